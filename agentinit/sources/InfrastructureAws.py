# This file is part of agentinit. See LICENSE file for license information.
"""Infrastructure for AWS (EC2 metadata service plus the agent registry)

Notes:
 * user-data is a JSON document naming the registry endpoint, e.g.
   {"registry": {"endpoint": "http://10.0.0.6:25777"},
    "dns": {"nameserver": ["10.0.0.2"]}}
 * When nameservers are given the registry host is resolved with them, not
   with the system resolver, and the endpoint is rewritten to use the
   address. An endpoint whose host is already an IP address is used as is.
 * Instances are safe to share between threads; nothing is cached.
"""

import logging
from typing import Optional

from agentinit import net, sources, util
from agentinit.agent_settings import Networks, Settings, parse_user_data
from agentinit.net.dns import DnsResolver
from agentinit.settings import CFG_BUILTIN
from agentinit.sources.metadata import (
    INSTANCE_ID_PATH,
    PUBLIC_KEY_PATH,
    USER_DATA_PATH,
    MetadataClient,
)
from agentinit.sources.registry import RegistryClient

LOG = logging.getLogger(__name__)

BUILTIN_INFRA_CONFIG = util.get_cfg_by_path(
    CFG_BUILTIN, ["infrastructure", "Aws"]
)


class InfrastructureAws(sources.Infrastructure):

    infraname = "Aws"

    def __init__(
        self,
        metadata_url: str,
        dns_resolver: sources.HostResolver,
        infra_cfg: Optional[dict] = None,
    ):
        self.infra_cfg = util.mergemanydict([infra_cfg, BUILTIN_INFRA_CONFIG])
        self.dns_resolver = dns_resolver
        self.metadata = MetadataClient(
            metadata_url,
            timeout=self.infra_cfg["timeout"],
            max_bytes=self.infra_cfg["max_bytes"],
        )
        self.registry = RegistryClient(
            timeout=self.infra_cfg["timeout"],
            max_bytes=self.infra_cfg["max_bytes"],
        )

    def setup_ssh(
        self, delegate: sources.SshSetupDelegate, username: str
    ) -> None:
        public_key = self.metadata.get(PUBLIC_KEY_PATH)
        LOG.debug("Installing public key for user %s", username)
        delegate.setup_ssh(public_key, username)

    def get_settings(self) -> Settings:
        user_data = parse_user_data(self.metadata.get(USER_DATA_PATH))
        endpoint = self._resolve_registry_endpoint(
            user_data.registry_endpoint, user_data.nameservers
        )
        instance_id = self.metadata.get(INSTANCE_ID_PATH)
        LOG.debug(
            "Using registry %s for instance %s", endpoint, instance_id
        )
        return self.registry.get(endpoint, instance_id)

    def setup_networking(
        self, delegate: sources.NetworkingDelegate, networks: Networks
    ) -> None:
        delegate.setup_dhcp(networks)

    def _resolve_registry_endpoint(self, endpoint: str, nameservers) -> str:
        """Return endpoint with its host resolved against nameservers.

        Without nameservers, or when the host is already an address, the
        endpoint is returned unchanged.
        """
        if not nameservers:
            return endpoint
        host = net.get_url_host(endpoint)
        if net.is_ip_address(host):
            LOG.debug(
                "Registry host %s is an IP address, skipping DNS lookup", host
            )
            return endpoint
        ip = self.dns_resolver.lookup_host(list(nameservers), host)
        return net.replace_url_host(endpoint, ip)


def new_aws_infrastructure(
    sys_cfg: Optional[dict] = None,
    dns_resolver: Optional[sources.HostResolver] = None,
) -> InfrastructureAws:
    """Build an InfrastructureAws from system config.

    :param sys_cfg: Merged system config, as from util.fetch_base_config.
        Values under infrastructure/Aws override the built-in defaults.
    :param dns_resolver: Resolver for registry hosts. A DnsResolver using
        the configured dns_timeout and dns_port is built when omitted.
    """
    infra_cfg = util.mergemanydict(
        [
            util.get_cfg_by_path(sys_cfg or {}, ["infrastructure", "Aws"], {}),
            BUILTIN_INFRA_CONFIG,
        ]
    )
    if dns_resolver is None:
        dns_resolver = DnsResolver(
            timeout=infra_cfg["dns_timeout"], port=infra_cfg["dns_port"]
        )
    return InfrastructureAws(
        infra_cfg["metadata_url"], dns_resolver, infra_cfg=infra_cfg
    )
