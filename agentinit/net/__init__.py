# This file is part of agentinit. See LICENSE file for license information.

import ipaddress
import logging
from urllib.parse import urlsplit, urlunsplit

LOG = logging.getLogger(__name__)


def is_ip_address(s: str) -> bool:
    """Returns a bool indicating if ``s`` is an IP address.

    :param s: Hostname or address string, IPv6 may be bracketed.
    :return: True if ``s`` parses as an IPv4 or IPv6 address.
    """
    try:
        ipaddress.ip_address(s.strip("[]"))
    except ValueError:
        return False
    return True


def is_ipv6_address(s: str) -> bool:
    try:
        return isinstance(
            ipaddress.ip_address(s.strip("[]")), ipaddress.IPv6Address
        )
    except ValueError:
        return False


def get_url_host(url: str) -> str:
    """Return the host of url without port, brackets or userinfo.

    Unlike urlsplit().hostname the host keeps its case.
    """
    hostport = urlsplit(url).netloc.rpartition("@")[2]
    if hostport.startswith("["):
        host = hostport[1:].partition("]")[0]
    else:
        host = hostport.partition(":")[0]
    if not host:
        raise ValueError("No host found in url '%s'" % url)
    return host


def replace_url_host(url: str, new_host: str) -> str:
    """Swap the host of url for new_host.

    Scheme, userinfo, port, path, query and fragment are left untouched.
    IPv6 literals are bracketed.
    """
    parts = urlsplit(url)
    if not parts.hostname:
        raise ValueError("No host found in url '%s'" % url)

    netloc = new_host
    if is_ipv6_address(new_host):
        netloc = "[%s]" % new_host.strip("[]")
    if parts.port is not None:
        netloc = "%s:%s" % (netloc, parts.port)
    userinfo, sep, _ = parts.netloc.rpartition("@")
    if sep:
        netloc = "%s@%s" % (userinfo, netloc)

    new_url = urlunsplit(
        (parts.scheme, netloc, parts.path, parts.query, parts.fragment)
    )
    LOG.debug("Rewrote url %s to %s", url, new_url)
    return new_url
