from __future__ import annotations

import selectors
import time
from dataclasses import dataclass
from typing import BinaryIO

from mcastdump.core.artifacts import EventLogger, NullEventLogger
from mcastdump.core.cancel import CancelToken
from mcastdump.core.config import DEFAULT_RECV_BUF
from mcastdump.core.errors import ReceiveError, SinkWriteError
from mcastdump.core.membership import CaptureSession


@dataclass(frozen=True)
class CaptureStats:
    datagrams: int
    bytes: int
    duration_s: float
    reason: str

    def to_dict(self) -> dict[str, object]:
        return {
            "datagrams": self.datagrams,
            "bytes": self.bytes,
            "duration_s": round(self.duration_s, 3),
            "reason": self.reason,
        }


def _write(sink: BinaryIO, data: bytes, *, flush: bool) -> None:
    try:
        sink.write(data)
        if flush:
            sink.flush()
    except OSError as e:
        raise SinkWriteError(e.strerror or str(e)) from e


def run_capture(
    session: CaptureSession,
    sink: BinaryIO,
    token: CancelToken,
    *,
    recv_buf: int = DEFAULT_RECV_BUF,
    unbuffered: bool = False,
    events: EventLogger | None = None,
) -> CaptureStats:
    """
    Receive datagrams from the session and write each payload to the sink, verbatim
    and in arrival order, until the token is cancelled or its deadline passes.

    The loop has no exit condition of its own. The only blocking point is the
    selector, which waits on the socket and the token's wake-up fd together with
    the remaining lifetime as timeout. Cancellation is checked before every read,
    so a datagram still queued when the stop arrives is not written.
    """
    events = events or NullEventLogger()
    sock = session.sock
    datagrams = 0
    total = 0
    start = time.monotonic()

    sel = selectors.DefaultSelector()
    sel.register(sock, selectors.EVENT_READ, "sock")
    sel.register(token, selectors.EVENT_READ, "cancel")
    try:
        while not token.cancelled:
            ready = sel.select(token.remaining())
            if token.cancelled:
                break
            for key, _mask in ready:
                if key.data != "sock":
                    continue
                try:
                    data, addr = sock.recvfrom(recv_buf)
                except OSError as e:
                    raise ReceiveError(e.strerror or str(e)) from e
                if data:
                    _write(sink, data, flush=unbuffered)
                datagrams += 1
                total += len(data)
                events.log({"event": "rx", "src": {"host": addr[0], "port": addr[1]}, "len": len(data)})
    finally:
        sel.close()

    try:
        sink.flush()
    except OSError as e:
        raise SinkWriteError(e.strerror or str(e)) from e

    stats = CaptureStats(
        datagrams=datagrams,
        bytes=total,
        duration_s=time.monotonic() - start,
        reason=token.reason or "interrupt",
    )
    events.log({"event": "stop", **stats.to_dict()})
    return stats
