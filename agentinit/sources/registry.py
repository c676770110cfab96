# This file is part of agentinit. See LICENSE file for license information.

import logging

from agentinit import url_helper
from agentinit.agent_settings import Settings, parse_settings

LOG = logging.getLogger(__name__)


class RegistryClient:
    """Fetch an instance's agent settings from the registry."""

    def __init__(self, timeout=None, max_bytes=url_helper.DEFAULT_MAX_BYTES):
        self.timeout = timeout
        self.max_bytes = max_bytes

    def settings_url(self, endpoint: str, instance_id: str) -> str:
        return url_helper.combine_url(
            endpoint, "instances", instance_id, "settings"
        )

    def get(self, endpoint: str, instance_id: str) -> Settings:
        """Fetch and decode the settings for instance_id from endpoint.

        :raises UrlError: If the request fails, the status is not 2xx or
            the body is not UTF-8.
        :raises SettingsFormatError: If the document cannot be decoded.
        """
        url = self.settings_url(endpoint, instance_id)
        LOG.debug("Fetching settings for %s from %s", instance_id, url)
        body = url_helper.read_text(
            url, timeout=self.timeout, max_bytes=self.max_bytes
        )
        return parse_settings(body)
