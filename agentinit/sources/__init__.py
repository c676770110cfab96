# This file is part of agentinit. See LICENSE file for license information.
"""Infrastructure sources and the collaborators they hand work off to.

An infrastructure knows how to find the agent's settings and its SSH key on
one cloud. Installing the key and configuring interfaces are left to the
delegates passed in by the caller.
"""

import abc
from typing import Protocol, Sequence

from agentinit.agent_settings import Networks, Settings


class SshSetupDelegate(Protocol):
    def setup_ssh(self, public_key: str, username: str) -> None:
        ...


class NetworkingDelegate(Protocol):
    def setup_dhcp(self, networks: Networks) -> None:
        ...


class HostResolver(Protocol):
    def lookup_host(self, dns_servers: Sequence[str], host: str) -> str:
        ...


class Infrastructure(metaclass=abc.ABCMeta):

    infraname = "_undef"

    def __str__(self):
        return type(self).__name__

    @abc.abstractmethod
    def setup_ssh(self, delegate: SshSetupDelegate, username: str) -> None:
        """Fetch the instance public key and hand it to delegate."""

    @abc.abstractmethod
    def get_settings(self) -> Settings:
        """Resolve the agent settings for this instance."""

    @abc.abstractmethod
    def setup_networking(
        self, delegate: NetworkingDelegate, networks: Networks
    ) -> None:
        """Ask delegate to configure networks."""
