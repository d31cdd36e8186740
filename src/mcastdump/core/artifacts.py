from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any


def utc_ts() -> str:
    return datetime.now(timezone.utc).isoformat()


class EventLogger:
    def __init__(self, path: Path) -> None:
        self._path = path
        self._fp = path.open("w", encoding="utf-8", newline="\n")

    def log(self, event: dict[str, Any]) -> None:
        self._fp.write(json.dumps({"ts": utc_ts(), **event}, ensure_ascii=False) + "\n")
        self._fp.flush()

    def close(self) -> None:
        if not self._fp.closed:
            self._fp.close()


class NullEventLogger(EventLogger):
    """Used when no --events path is given; drops everything."""

    def __init__(self) -> None:
        pass

    def log(self, event: dict[str, Any]) -> None:
        return None

    def close(self) -> None:
        return None


def open_event_logger(path: Path | None) -> EventLogger:
    if path is None:
        return NullEventLogger()
    path.parent.mkdir(parents=True, exist_ok=True)
    return EventLogger(path)
