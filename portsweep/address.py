"""
Address Normalization Module

Canonicalizes user supplied targets before any socket is created:
- Strips stray bracket pairs left over from copy-paste
- Wraps IPv6 literals in exactly one bracket pair
- Resolves the target once into a numeric socket address
"""

import socket
from dataclasses import dataclass
import logging

from .errors import AddressResolutionError, ConfigError

logger = logging.getLogger(__name__)

_BRACKETS_AND_SPACE = "[] \t\r\n\f\v"


@dataclass(frozen=True)
class ResolvedTarget:
    """A normalized host together with the address probes connect to."""
    host: str
    address: str
    family: int

    def endpoint(self, port: int) -> str:
        return format_target(self.host, port)


def strip_brackets(host: str) -> str:
    """Remove all surrounding brackets and whitespace, however deeply nested."""
    return host.strip(_BRACKETS_AND_SPACE)


def normalize_host(host: str) -> str:
    """Return the canonical form of a hostname or IP literal.

    Anything containing a colon is treated as an IPv6 literal and wrapped
    in a single bracket pair; IPv4 addresses and hostnames are returned
    bare. Applying this twice gives the same result as applying it once.
    """
    bare = strip_brackets(host)
    if not bare:
        raise ConfigError(f"Invalid target: {host!r}")
    if ":" in bare:
        return f"[{bare}]"
    return bare


def format_target(host: str, port: int) -> str:
    """Format a host and port as ``host:port``, e.g. ``[::1]:80``."""
    return f"{normalize_host(host)}:{port}"


def resolve_address(host: str, port: int = 0) -> ResolvedTarget:
    """Normalize ``host`` and resolve it to a concrete socket address.

    Raises AddressResolutionError when the name does not resolve.
    """
    normalized = normalize_host(host)
    try:
        infos = socket.getaddrinfo(
            strip_brackets(normalized), port, type=socket.SOCK_STREAM
        )
    except (socket.gaierror, UnicodeError, OSError) as e:
        raise AddressResolutionError(normalized, str(e)) from e

    if not infos:
        raise AddressResolutionError(normalized)

    family, _, _, _, sockaddr = infos[0]
    logger.debug(f"Resolved {format_target(normalized, port)} to {sockaddr[0]}")
    return ResolvedTarget(host=normalized, address=sockaddr[0], family=family)
