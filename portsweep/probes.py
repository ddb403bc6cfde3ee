"""
Probe Workers

One probe per port and protocol:
- TCP connect probe with a best-effort banner read
- UDP null-datagram probe that only ever reports open ports

Workers never raise for network failures; every outcome is mapped to a
ScanResult (or, for UDP, to no result at all).
"""

import asyncio
import socket
from typing import Optional
from dataclasses import dataclass
from enum import Enum
import logging

from .address import ResolvedTarget

logger = logging.getLogger(__name__)

BANNER_SIZE = 1024
BANNER_TIMEOUT = 2.0
UDP_PAYLOAD = b"\x00"
UDP_BUFFER = 512

MIN_PORT = 1
MAX_PORT = 65535


class Protocol(Enum):
    TCP = "TCP"
    UDP = "UDP"


class PortStatus(Enum):
    OPEN = "OPEN"
    CLOSED = "CLOSED"
    TIMEOUT = "TIMEOUT"


@dataclass(frozen=True)
class ScanJob:
    """A single port to probe over a single protocol."""
    host: str
    port: int
    protocol: Protocol

    def __post_init__(self):
        if not MIN_PORT <= self.port <= MAX_PORT:
            raise ValueError(f"Port out of range: {self.port}")


@dataclass(frozen=True)
class ScanResult:
    """Classified outcome of one probe."""
    host: str
    port: int
    protocol: Protocol
    status: PortStatus
    banner: str = ""

    @property
    def is_open(self) -> bool:
        return self.status is PortStatus.OPEN


def _clean_banner(data: bytes) -> str:
    text = data.decode("utf-8", errors="replace")
    return " ".join(line.strip() for line in text.splitlines() if line.strip())


async def _read_banner(reader: asyncio.StreamReader, timeout: float) -> str:
    try:
        data = await asyncio.wait_for(reader.read(BANNER_SIZE), timeout=timeout)
    except (asyncio.TimeoutError, OSError):
        return ""
    return _clean_banner(data)


async def tcp_probe(
    target: ResolvedTarget,
    port: int,
    timeout: float,
    banner_timeout: float = BANNER_TIMEOUT,
) -> ScanResult:
    """Connect to ``port`` and classify it as OPEN, CLOSED or TIMEOUT.

    On success a single read of up to BANNER_SIZE bytes is attempted with
    ``banner_timeout``; a missing banner never changes the OPEN status.
    """
    try:
        reader, writer = await asyncio.wait_for(
            asyncio.open_connection(target.address, port), timeout=timeout
        )
    except asyncio.TimeoutError:
        return ScanResult(target.host, port, Protocol.TCP, PortStatus.TIMEOUT)
    except OSError as e:
        logger.debug(f"TCP {target.endpoint(port)} refused: {e}")
        return ScanResult(target.host, port, Protocol.TCP, PortStatus.CLOSED)

    try:
        banner = await _read_banner(reader, banner_timeout)
    finally:
        writer.close()
        try:
            await writer.wait_closed()
        except OSError as e:
            logger.debug(f"TCP {target.endpoint(port)} close failed: {e}")

    return ScanResult(target.host, port, Protocol.TCP, PortStatus.OPEN, banner)


class _DatagramProbe(asyncio.DatagramProtocol):
    """Resolves ``reply`` with the first datagram received."""

    def __init__(self):
        self.reply = asyncio.get_running_loop().create_future()

    def datagram_received(self, data, addr):
        if not self.reply.done():
            self.reply.set_result(data[:UDP_BUFFER])

    def error_received(self, exc):
        # ICMP errors are ambiguous for UDP; keep waiting for a datagram
        logger.debug(f"UDP probe error: {exc}")


def _wildcard(family: int) -> str:
    return "::" if family == socket.AF_INET6 else "0.0.0.0"


async def udp_probe(
    target: ResolvedTarget,
    port: int,
    timeout: float,
) -> Optional[ScanResult]:
    """Send one null datagram to ``port`` and wait for any reply.

    Returns an OPEN result when a datagram arrives and None otherwise:
    silence, ICMP errors and local socket failures are all indistinguishable
    from a filtered port, so no CLOSED status is ever produced.
    """
    loop = asyncio.get_running_loop()
    try:
        transport, protocol = await loop.create_datagram_endpoint(
            _DatagramProbe,
            local_addr=(_wildcard(target.family), 0),
            family=target.family,
        )
    except OSError as e:
        logger.debug(f"UDP {target.endpoint(port)} bind failed: {e}")
        return None

    try:
        transport.sendto(UDP_PAYLOAD, (target.address, port))
        await asyncio.wait_for(protocol.reply, timeout=timeout)
    except asyncio.TimeoutError:
        return None
    except OSError as e:
        logger.debug(f"UDP {target.endpoint(port)} send failed: {e}")
        return None
    finally:
        transport.close()

    return ScanResult(target.host, port, Protocol.UDP, PortStatus.OPEN)
