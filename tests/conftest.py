"""
Pytest configuration and shared fixtures.
"""

from __future__ import annotations

import io
import socket
import sys
from pathlib import Path

import pytest


# Ensure src is in path
@pytest.fixture(scope="session", autouse=True)
def setup_path():
    project_root = Path(__file__).resolve().parents[0].parent
    src_dir = project_root / "src"
    if str(src_dir) not in sys.path:
        sys.path.insert(0, str(src_dir))


@pytest.fixture
def loopback_session():
    """
    A CaptureSession over a unicast UDP socket on 127.0.0.1.

    The capture loop does not care how the socket was joined, so this lets loop
    tests run where multicast is unavailable.
    """
    from mcastdump.core.membership import CaptureSession

    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    sock.bind(("127.0.0.1", 0))
    session = CaptureSession(sock=sock, bound=sock.getsockname(), group="239.1.1.1")
    yield session
    session.close()


@pytest.fixture
def sender():
    """Factory sending datagrams to an address from a throwaway socket."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)

    def _send(address: tuple[str, int], *payloads: bytes) -> None:
        for payload in payloads:
            sock.sendto(payload, address)

    yield _send
    sock.close()


@pytest.fixture
def byte_sink() -> io.BytesIO:
    return io.BytesIO()


@pytest.fixture
def token():
    from mcastdump.core.cancel import CancelToken

    tok = CancelToken()
    yield tok
    tok.close()
