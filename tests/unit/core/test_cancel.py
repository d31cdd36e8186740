from __future__ import annotations

import os
import select
import signal
import time

import pytest

from mcastdump.core.cancel import CancelToken, install_signal_handlers


def test_zero_lifetime_arms_nothing(token: CancelToken) -> None:
    token.arm(0)

    assert token.remaining() is None
    assert not token.cancelled


def test_deadline_marks_token_cancelled(token: CancelToken) -> None:
    token.arm(0.05)
    assert 0.0 < token.remaining() <= 0.05

    time.sleep(0.1)

    assert token.remaining() == 0.0
    assert token.cancelled
    assert token.reason == "deadline"


def test_negative_lifetime_rejected(token: CancelToken) -> None:
    with pytest.raises(ValueError):
        token.arm(-1)


def test_first_reason_wins(token: CancelToken) -> None:
    token.cancel("interrupt")
    token.cancel("deadline")

    assert token.reason == "interrupt"


def test_cancel_makes_fd_readable(token: CancelToken) -> None:
    readable, _, _ = select.select([token], [], [], 0)
    assert readable == []

    token.cancel()

    readable, _, _ = select.select([token], [], [], 0)
    assert readable == [token]


def test_signal_handler_cancels_and_is_restored(token: CancelToken) -> None:
    before = signal.getsignal(signal.SIGTERM)

    with install_signal_handlers(token):
        os.kill(os.getpid(), signal.SIGTERM)
        # the handler runs between bytecodes; give it a moment
        for _ in range(100):
            if token.cancelled:
                break
            time.sleep(0.01)
        assert token.reason == "interrupt"

    assert signal.getsignal(signal.SIGTERM) is before
