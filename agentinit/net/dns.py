# This file is part of agentinit. See LICENSE file for license information.
"""Resolve host names against an explicit list of nameservers.

The system resolver configuration is never consulted: early in boot it may
not exist yet, and user-data can name nameservers that are the only ones able
to resolve the registry host.
"""

import logging
from typing import List, Optional, Sequence

from dnslib import QTYPE, RCODE, DNSRecord
from dnslib.dns import DNSError

from agentinit import net

LOG = logging.getLogger(__name__)

DNS_PORT = 53
DNS_TIMEOUT = 5

# A first, AAAA only when a server has no A record
QUERY_TYPES = ("A", "AAAA")


class DnsLookupError(IOError):
    def __init__(self, host: str, dns_servers: Sequence[str], reasons=None):
        self.host = host
        self.dns_servers = list(dns_servers)
        self.reasons: List[str] = list(reasons or [])
        msg = "Could not resolve %s using nameservers %s" % (
            host,
            self.dns_servers,
        )
        if self.reasons:
            msg += ": %s" % "; ".join(self.reasons)
        IOError.__init__(self, msg)


class DnsResolver:
    def __init__(self, timeout=DNS_TIMEOUT, port=DNS_PORT):
        self.timeout = timeout
        self.port = port

    def lookup_host(self, dns_servers: Sequence[str], host: str) -> str:
        """Resolve host to an IP address using only dns_servers.

        Servers are tried in order and the first address found is returned.

        :raises ValueError: If dns_servers is empty.
        :raises DnsLookupError: If no server returns an address for host.
        """
        if not dns_servers:
            raise ValueError(
                "Refusing to resolve %s without nameservers" % host
            )

        reasons = []
        for server in dns_servers:
            try:
                ip = self._lookup_on_server(server, host)
            except (OSError, DNSError) as e:
                LOG.warning(
                    "Nameserver %s failed to resolve %s: %s", server, host, e
                )
                reasons.append("%s: %s" % (server, e))
                continue
            if ip:
                LOG.debug("Resolved %s to %s via %s", host, ip, server)
                return ip
            reasons.append("%s: no address records" % server)
        raise DnsLookupError(host, dns_servers, reasons)

    def _lookup_on_server(self, server: str, host: str) -> Optional[str]:
        for qtype in QUERY_TYPES:
            reply = self._query(server, host, qtype)
            rcode = reply.header.rcode
            if rcode == RCODE.NXDOMAIN:
                raise DNSError("%s does not exist" % host)
            if rcode != RCODE.NOERROR:
                raise DNSError(
                    "%s query for %s returned %s"
                    % (qtype, host, RCODE.get(rcode, rcode))
                )
            for rr in reply.rr:
                if rr.rtype == getattr(QTYPE, qtype):
                    return str(rr.rdata)
        return None

    def _query(self, server: str, host: str, qtype: str) -> DNSRecord:
        question = DNSRecord.question(host, qtype)
        reply = self._send(question, server, tcp=False)
        if reply.header.tc:
            LOG.debug("Truncated reply from %s, retrying over TCP", server)
            reply = self._send(question, server, tcp=True)
        return reply

    def _send(self, question: DNSRecord, server: str, tcp: bool) -> DNSRecord:
        LOG.debug(
            "Sending %s query for %s to %s",
            QTYPE.get(question.q.qtype),
            question.q.qname,
            server,
        )
        packet = question.send(
            server,
            self.port,
            tcp=tcp,
            timeout=self.timeout,
            ipv6=net.is_ipv6_address(server),
        )
        reply = DNSRecord.parse(packet)
        if reply.header.id != question.header.id:
            raise DNSError(
                "Reply id %s does not match query id %s"
                % (reply.header.id, question.header.id)
            )
        if (
            reply.q.qname != question.q.qname
            or reply.q.qtype != question.q.qtype
        ):
            raise DNSError(
                "Reply is for %s %s, not the question asked"
                % (reply.q.qname, QTYPE.get(reply.q.qtype))
            )
        return reply
