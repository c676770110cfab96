# This file is part of agentinit. See LICENSE file for license information.
"""Agent settings model and the decoders for the documents that carry it.

Two documents are decoded here:

 * user-data from the metadata service, a single JSON object naming the
   registry endpoint and optionally the nameservers to resolve it with.
 * the registry settings document. The registry wraps the settings JSON in
   a JSON string: ``{"settings": "<json-encoded settings>"}``. That double
   encoding stays in this module; callers only ever see ``Settings``.
"""

import json
import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple
from urllib.parse import urlsplit

LOG = logging.getLogger(__name__)

REGISTRY_SETTINGS_KEY = "settings"


class SettingsFormatError(ValueError):
    pass


@dataclass(frozen=True)
class NetworkSettings:
    default: Tuple[str, ...] = ()
    dns: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if self.default:
            data["default"] = list(self.default)
        if self.dns:
            data["dns"] = list(self.dns)
        return data


Networks = Dict[str, NetworkSettings]


@dataclass(frozen=True)
class Settings:
    """Resolved agent settings.

    networks is stored as a read-only mapping. Settings compare by value but
    are not hashable.
    """

    agent_id: str
    networks: Mapping[str, NetworkSettings]
    mbus: str

    def __post_init__(self):
        object.__setattr__(
            self, "networks", MappingProxyType(dict(self.networks))
        )

    def default_network_for(self, role: str) -> Optional[str]:
        """Return the name of the first network marked default for role."""
        for name, network in self.networks.items():
            if role in network.default:
                return name
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "agent_id": self.agent_id,
            "networks": {
                name: network.to_dict()
                for name, network in self.networks.items()
            },
            "mbus": self.mbus,
        }


@dataclass(frozen=True)
class UserData:
    registry_endpoint: str
    nameservers: Tuple[str, ...] = ()


def _load_json_object(raw: str, what: str) -> Dict[str, Any]:
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise SettingsFormatError(
            "Malformed JSON in %s: %s" % (what, e)
        ) from e
    if not isinstance(data, dict):
        raise SettingsFormatError(
            "Expected a JSON object in %s, got %s"
            % (what, type(data).__name__)
        )
    return data


def _string_list(value, what: str) -> Tuple[str, ...]:
    if value is None:
        return ()
    if not isinstance(value, list) or not all(
        isinstance(item, str) for item in value
    ):
        raise SettingsFormatError("%s must be a list of strings" % what)
    return tuple(value)


def _required_string(data: Dict[str, Any], key: str, what: str) -> str:
    value = data.get(key)
    if not isinstance(value, str):
        raise SettingsFormatError(
            "%s is missing required string field '%s'" % (what, key)
        )
    return value


def _check_endpoint(endpoint: str) -> None:
    what = "user-data field 'registry.endpoint'"
    try:
        parts = urlsplit(endpoint)
        # port is parsed lazily and raises for junk or out of range values
        parts.port
    except ValueError as e:
        raise SettingsFormatError(
            "%s is not a valid URL '%s': %s" % (what, endpoint, e)
        ) from e
    if not parts.scheme or not parts.hostname:
        raise SettingsFormatError(
            "%s must be a URL with a scheme and host, got '%s'"
            % (what, endpoint)
        )


def parse_user_data(raw: str) -> UserData:
    """Decode the metadata service user-data blob.

    :raises SettingsFormatError: If raw is not a JSON object or lacks a
        non-empty ``registry.endpoint``.
    """
    data = _load_json_object(raw, "user-data")

    registry = data.get("registry")
    if not isinstance(registry, dict):
        raise SettingsFormatError(
            "user-data is missing required object field 'registry'"
        )
    endpoint = registry.get("endpoint")
    if not isinstance(endpoint, str) or not endpoint:
        raise SettingsFormatError(
            "user-data is missing required string field 'registry.endpoint'"
        )
    _check_endpoint(endpoint)

    dns = data.get("dns")
    if dns is None:
        dns = {}
    if not isinstance(dns, dict):
        raise SettingsFormatError("user-data field 'dns' must be an object")
    nameservers = _string_list(
        dns.get("nameserver"), "user-data field 'dns.nameserver'"
    )
    return UserData(registry_endpoint=endpoint, nameservers=nameservers)


def _parse_networks(value) -> Networks:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise SettingsFormatError("settings field 'networks' must be an object")
    networks = {}
    for name, net_cfg in value.items():
        what = "settings field 'networks.%s'" % name
        if net_cfg is None:
            net_cfg = {}
        if not isinstance(net_cfg, dict):
            raise SettingsFormatError("%s must be an object" % what)
        networks[name] = NetworkSettings(
            default=_string_list(net_cfg.get("default"), what + ".default"),
            dns=_string_list(net_cfg.get("dns"), what + ".dns"),
        )
    return networks


def parse_settings(raw: str) -> Settings:
    """Decode a registry settings document into Settings.

    :raises SettingsFormatError: If either the envelope or the settings
        string it carries is malformed or incomplete.
    """
    envelope = _load_json_object(raw, "registry response")
    inner = envelope.get(REGISTRY_SETTINGS_KEY)
    if not isinstance(inner, str):
        raise SettingsFormatError(
            "registry response is missing required string field '%s'"
            % REGISTRY_SETTINGS_KEY
        )

    data = _load_json_object(inner, "registry settings")
    settings = Settings(
        agent_id=_required_string(data, "agent_id", "settings"),
        networks=_parse_networks(data.get("networks")),
        mbus=_required_string(data, "mbus", "settings"),
    )
    LOG.debug(
        "Decoded settings for agent %s with networks %s",
        settings.agent_id,
        sorted(settings.networks),
    )
    return settings


def dump_settings(settings: Settings) -> str:
    """Encode settings as a registry settings document."""
    inner = json.dumps(settings.to_dict(), sort_keys=True)
    return json.dumps({REGISTRY_SETTINGS_KEY: inner})
