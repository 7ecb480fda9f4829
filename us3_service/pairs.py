from __future__ import annotations
"""Configuration values accepted when constructing a service or storage."""
from dataclasses import dataclass, field
from typing import Any

from .errors import CredentialInvalidError, EndpointInvalidError, PairUnsupportedError

PROTOCOL_HMAC = "hmac"
PROTOCOL_HTTP = "http"
PROTOCOL_HTTPS = "https"

_CREDENTIAL_PROTOCOLS = {
    # protocol -> number of values after the protocol
    PROTOCOL_HMAC: 2,
    "api_key": 1,
    "file": 1,
    "env": 0,
    "base64": 1,
    "basic": 2,
}
_ENDPOINT_PROTOCOLS = {PROTOCOL_HTTP, PROTOCOL_HTTPS, "file", "tcp"}
_DEFAULT_PORTS = {PROTOCOL_HTTP: 80, PROTOCOL_HTTPS: 443}


@dataclass(frozen=True)
class Credential:
    """A parsed ``<protocol>:<value>[:<value>]`` credential."""

    protocol: str
    args: tuple[str, ...] = ()

    @classmethod
    def parse(cls, value: str) -> "Credential":
        protocol, _, rest = (value or "").partition(":")
        expected = _CREDENTIAL_PROTOCOLS.get(protocol)
        if expected is None:
            raise CredentialInvalidError(f"credential protocol {protocol!r} is not recognized")
        args = tuple(rest.split(":", expected - 1)) if expected else ()
        if len(args) != expected or not all(args):
            raise CredentialInvalidError(f"credential {protocol!r} expects {expected} value(s)")
        return cls(protocol=protocol, args=args)

    def hmac(self) -> tuple[str, str]:
        access_key, secret_key = self.args
        return access_key, secret_key


@dataclass(frozen=True)
class Endpoint:
    """A parsed ``<protocol>:<host>[:<port>]`` endpoint."""

    protocol: str
    host: str = ""
    port: int = 0

    @classmethod
    def parse(cls, value: str) -> "Endpoint":
        protocol, _, rest = (value or "").partition(":")
        if protocol not in _ENDPOINT_PROTOCOLS:
            raise EndpointInvalidError(f"endpoint protocol {protocol!r} is not recognized")
        if protocol == "file":
            return cls(protocol=protocol, host=rest)
        host, _, port_text = rest.partition(":")
        if not host:
            raise EndpointInvalidError(f"endpoint {value!r} has no host")
        if port_text:
            try:
                port = int(port_text)
            except ValueError:
                raise EndpointInvalidError(f"endpoint {value!r} has an invalid port") from None
        else:
            port = _DEFAULT_PORTS.get(protocol, 0)
        return cls(protocol=protocol, host=host, port=port)

    @property
    def url(self) -> str:
        return f"{self.protocol}://{self.host}:{self.port}"


@dataclass
class ServiceFeatures:
    """Optional behaviour switches for a service."""


@dataclass
class StorageFeatures:
    """Optional behaviour switches for a storage."""

    virtual_dir: bool = False


@dataclass
class DefaultServicePairs:
    """Default pairs applied to service operations."""

    list: dict[str, Any] = field(default_factory=dict)
    get: dict[str, Any] = field(default_factory=dict)


@dataclass
class DefaultStoragePairs:
    """Default pairs applied to every call of a storage operation.

    Pairs passed to the call itself take precedence.
    """

    create: dict[str, Any] = field(default_factory=dict)
    delete: dict[str, Any] = field(default_factory=dict)
    list: dict[str, Any] = field(default_factory=dict)
    read: dict[str, Any] = field(default_factory=dict)
    stat: dict[str, Any] = field(default_factory=dict)
    write: dict[str, Any] = field(default_factory=dict)


def merge_pairs(
    defaults: dict[str, Any],
    pairs: dict[str, Any],
    allowed: frozenset[str],
) -> dict[str, Any]:
    """Overlay ``pairs`` on ``defaults`` and reject anything not in ``allowed``."""

    merged = {**defaults, **pairs}
    for key, value in merged.items():
        if key not in allowed:
            raise PairUnsupportedError(key, value)
    return merged
