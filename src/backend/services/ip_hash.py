"""
Client address extraction and hashing.

Raw addresses never leave this module: callers receive a salted SHA-256
digest that is stable for a given address under a fixed salt but cannot be
reversed.

Forwarding headers are attacker-controlled unless a reverse proxy we trust
overwrote them, so they are only honoured when the immediate transport peer
belongs to a configured trusted-proxy network.
"""

import hashlib
import ipaddress
from collections.abc import Iterable, Mapping
from typing import Optional, Union

import structlog

logger = structlog.get_logger(__name__)

UNKNOWN_ADDRESS = "unknown"

# Checked in priority order
FORWARDING_HEADERS = (
    "x-forwarded-for",
    "x-real-ip",
    "x-vercel-forwarded-for",
)

IPNetwork = Union[ipaddress.IPv4Network, ipaddress.IPv6Network]


class TrustedProxyPolicy:
    """Decides whether a transport peer may vouch for the client address."""

    def __init__(self, networks: Iterable[str] = ()):
        self.networks: list[IPNetwork] = []
        for network in networks:
            try:
                self.networks.append(ipaddress.ip_network(network, strict=False))
            except ValueError:
                logger.warning("invalid_trusted_proxy_ignored", network=network)

    def is_trusted(self, peer: Optional[str]) -> bool:
        """Check if the peer address belongs to a trusted proxy network."""
        if not peer or not self.networks:
            return False
        try:
            address = ipaddress.ip_address(peer)
        except ValueError:
            return False
        return any(address in network for network in self.networks)


def _header(headers: Mapping[str, str], name: str) -> Optional[str]:
    value = headers.get(name)
    if value is None:
        # Plain dicts are case-sensitive; Starlette Headers are not
        value = next((v for k, v in headers.items() if k.lower() == name), None)
    return value.strip() if value and value.strip() else None


def extract_client_address(
    headers: Mapping[str, str],
    peer: Optional[str],
    policy: TrustedProxyPolicy,
) -> str:
    """
    Resolve the client address for a request.

    When the peer is a trusted proxy, the first forwarding header present wins
    (first entry for comma-separated lists). Otherwise the transport peer is
    used as-is. Falls back to "unknown".
    """
    if policy.is_trusted(peer):
        for name in FORWARDING_HEADERS:
            value = _header(headers, name)
            if value:
                first = value.split(",")[0].strip()
                if first:
                    return first

    return peer or UNKNOWN_ADDRESS


def hash_address(address: str, salt: str) -> str:
    """Salted one-way digest of an address: SHA-256(salt || address)."""
    return hashlib.sha256(f"{salt}{address}".encode("utf-8")).hexdigest()
