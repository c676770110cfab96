# This file is part of agentinit. See LICENSE file for license information.
"""Thin wrapper around requests for reading metadata and registry URLs."""

import logging
from typing import Optional
from urllib.parse import quote

import requests

from agentinit import version

LOG = logging.getLogger(__name__)

USER_AGENT = "agentinit/%s" % version.version_string()

# Upper bound on a response body; metadata and registry documents are small.
DEFAULT_MAX_BYTES = 1024 * 1024
CHUNK_SIZE = 64 * 1024


class UrlError(IOError):
    def __init__(self, cause, code=None, headers=None, url=None):
        IOError.__init__(self, str(cause))
        self.cause = cause
        self.code = code
        self.headers = headers
        if self.headers is None:
            self.headers = {}
        self.url = url

    def __str__(self):
        if self.url:
            return "%s (url: %s)" % (self.cause, self.url)
        return str(self.cause)


class UrlResponse:
    def __init__(self, response: requests.Response, contents: bytes):
        self._response = response
        self.contents = contents

    @property
    def code(self) -> int:
        return self._response.status_code

    @property
    def headers(self):
        return self._response.headers

    @property
    def url(self) -> str:
        return self._response.url

    def ok(self) -> bool:
        return 200 <= self.code < 300

    def __str__(self):
        return self.contents.decode("utf-8")


def combine_url(base: str, *add_ons: str) -> str:
    """Join path segments onto base, quoting each segment."""
    url = base.rstrip("/")
    for add_on in add_ons:
        url = "%s/%s" % (url, quote(str(add_on).strip("/"), safe=""))
    return url


def _read_limited(response: requests.Response, max_bytes: int) -> bytes:
    buf = bytearray()
    for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
        buf.extend(chunk)
        if len(buf) > max_bytes:
            raise UrlError(
                ValueError(
                    "Response body exceeds %s bytes" % max_bytes
                ),
                code=response.status_code,
                headers=response.headers,
                url=response.url,
            )
    return bytes(buf)


def readurl(
    url: str,
    *,
    timeout: Optional[float] = None,
    check_status: bool = True,
    max_bytes: int = DEFAULT_MAX_BYTES,
) -> UrlResponse:
    """GET url and read the whole body.

    :param url: The url to read.
    :param timeout: Seconds to wait for connect and for each read.
    :param check_status: Raise UrlError for any non-2xx response.
    :param max_bytes: Largest body accepted before giving up.
    :raises UrlError: On any transport failure, an unexpected status or an
        oversized body.
    """
    if timeout is not None:
        timeout = max(float(timeout), 0)

    LOG.debug("[GET] reading url %s (timeout=%s)", url, timeout)
    try:
        response = requests.request(
            "GET",
            url,
            headers={"User-Agent": USER_AGENT},
            timeout=timeout,
            allow_redirects=True,
            stream=True,
        )
    except requests.exceptions.RequestException as e:
        raise UrlError(e, url=url) from e

    try:
        if check_status:
            try:
                response.raise_for_status()
            except requests.exceptions.HTTPError as e:
                raise UrlError(
                    e,
                    code=response.status_code,
                    headers=response.headers,
                    url=url,
                ) from e
        try:
            contents = _read_limited(response, max_bytes)
        except requests.exceptions.RequestException as e:
            raise UrlError(
                e,
                code=response.status_code,
                headers=response.headers,
                url=url,
            ) from e
    finally:
        response.close()

    LOG.debug(
        "Read from %s (%s, %sb)", url, response.status_code, len(contents)
    )
    return UrlResponse(response, contents)


def read_text(url: str, **kwargs) -> str:
    """readurl, returning the body decoded as UTF-8.

    :raises UrlError: As readurl, or if the body is not valid UTF-8.
    """
    response = readurl(url, **kwargs)
    try:
        return str(response)
    except UnicodeDecodeError as e:
        raise UrlError(
            e, code=response.code, headers=response.headers, url=url
        ) from e
