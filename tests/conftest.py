"""Test configuration and fixtures for portsweep."""

import asyncio
import os
import socket
import sys

import pytest
import pytest_asyncio

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from portsweep.address import ResolvedTarget  # noqa: E402

BANNER = b"SSH-2.0-OpenSSH_9.6\r\n"


@pytest.fixture
def loopback() -> ResolvedTarget:
    return ResolvedTarget(host="127.0.0.1", address="127.0.0.1", family=socket.AF_INET)


@pytest.fixture
def refused_port() -> int:
    """A loopback TCP port with nothing listening on it."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest.fixture
def silent_udp_port():
    """A bound UDP port that never answers."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    sock.bind(("127.0.0.1", 0))
    yield sock.getsockname()[1]
    sock.close()


@pytest_asyncio.fixture
async def banner_server():
    """TCP server that greets every client with an SSH style banner."""
    async def handle(reader, writer):
        writer.write(BANNER)
        await writer.drain()
        writer.close()

    server = await asyncio.start_server(handle, "127.0.0.1", 0)
    yield server.sockets[0].getsockname()[1]
    server.close()
    await server.wait_closed()


@pytest_asyncio.fixture
async def quiet_server():
    """TCP server that accepts connections and never sends anything."""
    writers = []

    async def handle(reader, writer):
        writers.append(writer)

    server = await asyncio.start_server(handle, "127.0.0.1", 0)
    yield server.sockets[0].getsockname()[1]
    for writer in writers:
        writer.close()
    server.close()
    await server.wait_closed()


class _Echo(asyncio.DatagramProtocol):
    def connection_made(self, transport):
        self.transport = transport

    def datagram_received(self, data, addr):
        self.transport.sendto(b"pong", addr)


@pytest_asyncio.fixture
async def udp_echo_port():
    """UDP service that answers every datagram."""
    loop = asyncio.get_running_loop()
    transport, _ = await loop.create_datagram_endpoint(_Echo, local_addr=("127.0.0.1", 0))
    yield transport.get_extra_info("sockname")[1]
    transport.close()
