from __future__ import annotations

import signal
import socket
import time
from contextlib import contextmanager
from typing import Iterator


class CancelToken:
    """
    Single termination primitive shared by the capture loop and its stop triggers.

    - A deadline (from the configured lifetime) is checked by the loop itself
      through remaining(); nothing fires asynchronously for it.
    - cancel() is the only thing a signal handler does: it records the reason and
      writes one byte to a socket pair so a blocked selector wakes up.
    - The loop, not the handler, performs the flush and close.
    """

    def __init__(self) -> None:
        self._reason: str | None = None
        self._deadline: float | None = None
        self._rsock, self._wsock = socket.socketpair()
        self._rsock.setblocking(False)
        self._wsock.setblocking(False)

    def arm(self, lifetime_s: float) -> None:
        """Arm the one-shot deadline. A lifetime of 0 arms nothing (run until interrupted)."""
        if lifetime_s < 0:
            raise ValueError("lifetime must not be negative")
        if lifetime_s == 0:
            self._deadline = None
            return
        self._deadline = time.monotonic() + float(lifetime_s)

    @property
    def cancelled(self) -> bool:
        if self._reason is not None:
            return True
        if self._deadline is not None and time.monotonic() >= self._deadline:
            self._reason = "deadline"
            return True
        return False

    @property
    def reason(self) -> str | None:
        return self._reason

    def remaining(self) -> float | None:
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def cancel(self, reason: str = "interrupt") -> None:
        if self._reason is None:
            self._reason = reason
        try:
            self._wsock.send(b"\0")
        except OSError:
            # Wake-up pipe full or closed; the reason is already recorded.
            pass

    def fileno(self) -> int:
        return self._rsock.fileno()

    def close(self) -> None:
        self._rsock.close()
        self._wsock.close()


@contextmanager
def install_signal_handlers(
    token: CancelToken,
    signals: tuple[int, ...] = (signal.SIGINT, signal.SIGTERM),
) -> Iterator[CancelToken]:
    """Route the given signals to token.cancel("interrupt") while the block runs."""

    def _handler(_signum, _frame) -> None:
        token.cancel("interrupt")

    previous: dict[int, object] = {}
    try:
        for signum in signals:
            previous[signum] = signal.signal(signum, _handler)
        yield token
    finally:
        for signum, old in previous.items():
            signal.signal(signum, old)
