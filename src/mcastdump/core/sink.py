from __future__ import annotations

import sys
from pathlib import Path
from typing import BinaryIO

from mcastdump.core.errors import SinkOpenError, SinkWriteError


def open_sink(path: Path | None) -> BinaryIO:
    """Binary stdout when no path is given, otherwise the file truncated for writing."""
    if path is None:
        return sys.stdout.buffer
    try:
        return path.open("wb")
    except OSError as e:
        raise SinkOpenError(f"{path}: {e.strerror or e}") from e


def close_sink(stream: BinaryIO, *, owned: bool) -> None:
    """Flush, and close the stream only if open_sink() opened a file for it."""
    try:
        stream.flush()
    except OSError as e:
        raise SinkWriteError(e.strerror or str(e)) from e
    finally:
        if owned:
            stream.close()
