# This file is part of agentinit. See LICENSE file for license information.

import logging

from agentinit import url_helper
from agentinit.settings import DEFAULT_METADATA_URL

LOG = logging.getLogger(__name__)

PUBLIC_KEY_PATH = "/latest/meta-data/public-keys/0/openssh-key"
INSTANCE_ID_PATH = "/latest/meta-data/instance-id"
USER_DATA_PATH = "/latest/user-data"


class MetadataClient:
    """Read raw documents from the instance metadata service."""

    def __init__(
        self,
        metadata_url=DEFAULT_METADATA_URL,
        timeout=None,
        max_bytes=url_helper.DEFAULT_MAX_BYTES,
    ):
        self.metadata_url = metadata_url.rstrip("/")
        self.timeout = timeout
        self.max_bytes = max_bytes

    def get(self, path: str) -> str:
        """Return the body found at path on the metadata service.

        The body is returned exactly as served.

        :raises UrlError: If the request fails, the status is not 2xx or
            the body is not UTF-8.
        """
        url = "%s%s" % (self.metadata_url, path)
        LOG.debug("Fetching metadata from %s", url)
        return url_helper.read_text(
            url, timeout=self.timeout, max_bytes=self.max_bytes
        )
