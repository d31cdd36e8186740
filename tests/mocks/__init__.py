"""
Fake sockets for testing.

These stand in for the OS socket so membership and loop error paths can be
exercised without network privileges.
"""

from __future__ import annotations

import errno
import socket
from typing import Any


class FakeSocket:
    """
    Records the calls made by open_and_join() and fails at a chosen step.

    Usage:
        fake = FakeSocket(fail_on="bind")
        with pytest.raises(BindError):
            open_and_join("239.1.1.1", 5000, socket_factory=lambda *a: fake)
        assert fake.closed
    """

    def __init__(self, fail_on: str | None = None, err: int = errno.EADDRINUSE) -> None:
        self.fail_on = fail_on
        self.err = err
        self.calls: list[tuple[str, Any]] = []
        self.closed = False

    def _maybe_fail(self, step: str) -> None:
        if self.fail_on == step:
            raise OSError(self.err, f"fake {step} failure")

    def setsockopt(self, level: int, optname: int, value: Any) -> None:
        step = "join" if optname == socket.IP_ADD_MEMBERSHIP else "reuse"
        self.calls.append((step, value))
        self._maybe_fail(step)

    def bind(self, address: tuple[str, int]) -> None:
        self.calls.append(("bind", address))
        self._maybe_fail("bind")

    def fileno(self) -> int:
        return -1

    def close(self) -> None:
        self.closed = True


class BrokenRecvSocket:
    """
    Wraps a real UDP socket for readiness but fails every recvfrom().
    """

    def __init__(self, real: socket.socket, err: int = errno.ECONNREFUSED) -> None:
        self._real = real
        self._err = err

    def fileno(self) -> int:
        return self._real.fileno()

    def recvfrom(self, _bufsize: int) -> tuple[bytes, Any]:
        raise OSError(self._err, "fake receive failure")

    def close(self) -> None:
        self._real.close()


class BrokenSink:
    """Binary sink whose write() fails as a closed pipe would."""

    def __init__(self) -> None:
        self.flushes = 0

    def write(self, _data: bytes) -> int:
        raise BrokenPipeError(errno.EPIPE, "Broken pipe")

    def flush(self) -> None:
        self.flushes += 1
