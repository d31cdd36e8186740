from __future__ import annotations

import ipaddress
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from mcastdump.core.errors import ArgumentError


DEFAULT_RECV_BUF = 65535
MAX_RECV_BUF = 1048576


@dataclass(frozen=True)
class CaptureConfig:
    group: str
    port: int
    lifetime_s: int = 0
    output: Path | None = None
    recv_buf: int = DEFAULT_RECV_BUF
    unbuffered: bool = False
    events: Path | None = None


def validate_group(value: Any) -> str:
    text = str(value).strip()
    try:
        addr = ipaddress.IPv4Address(text)
    except ValueError:
        raise ArgumentError(f"not a dotted-decimal IPv4 address: {text!r}") from None
    if not addr.is_multicast:
        raise ArgumentError(f"not a multicast address: {text}")
    return str(addr)


def _as_int(key: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ArgumentError(f"{key} must be an integer")
    try:
        return int(str(value).strip(), 10)
    except ValueError:
        raise ArgumentError(f"{key} must be an integer, got {value!r}") from None


def _as_path(value: Any) -> Path | None:
    if value is None or value == "":
        return None
    return Path(str(value))


def _as_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("1", "true", "yes", "on"):
        return True
    if isinstance(value, str) and value.strip().lower() in ("0", "false", "no", "off"):
        return False
    raise ArgumentError(f"{key} must be a boolean, got {value!r}")


def parse_capture_config(merged: dict[str, Any]) -> CaptureConfig:
    group_raw = merged.get("address", merged.get("group"))
    if group_raw is None:
        raise ArgumentError("missing required multicast address")
    if merged.get("port") is None:
        raise ArgumentError("missing required port")
    if merged.get("lifetime") is None:
        raise ArgumentError("missing required lifetime")

    group = validate_group(group_raw)

    port = _as_int("port", merged["port"])
    if not 0 < port <= 65535:
        raise ArgumentError(f"port out of range: {port}")

    # 0 means run until interrupted; there is no "stop immediately".
    lifetime_s = _as_int("lifetime", merged["lifetime"])
    if lifetime_s < 0:
        raise ArgumentError(f"lifetime must not be negative: {lifetime_s}")

    recv_buf = merged.get("recv_buf")
    recv_buf = DEFAULT_RECV_BUF if recv_buf is None else _as_int("recv_buf", recv_buf)
    recv_buf = max(1, min(recv_buf, MAX_RECV_BUF))

    unbuffered = merged.get("unbuffered")
    unbuffered = False if unbuffered is None else _as_bool("unbuffered", unbuffered)

    return CaptureConfig(
        group=group,
        port=port,
        lifetime_s=lifetime_s,
        output=_as_path(merged.get("output")),
        recv_buf=recv_buf,
        unbuffered=unbuffered,
        events=_as_path(merged.get("events")),
    )


def load_config_file(path: Path) -> dict[str, Any]:
    suffix = path.suffix.lower()
    try:
        with path.open("r", encoding="utf-8") as f:
            if suffix in (".yaml", ".yml"):
                data = yaml.safe_load(f)
            elif suffix == ".json":
                data = json.load(f)
            else:
                raise ArgumentError(f"unsupported config file type: {path.name}")
    except OSError as e:
        raise ArgumentError(f"cannot read config file {path}: {e.strerror}") from e
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise ArgumentError(f"cannot parse config file {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ArgumentError(f"config file must contain a mapping: {path.name}")
    # Allow the settings to live under a top-level "capture" key.
    if "capture" in data:
        if not isinstance(data["capture"], dict):
            raise ArgumentError("invalid config: capture must be a mapping")
        data = data["capture"]
    return dict(data)


def merge_config(file_cfg: dict[str, Any], cli_cfg: dict[str, Any]) -> dict[str, Any]:
    merged = dict(file_cfg)
    if "group" in merged and "address" not in merged:
        merged["address"] = merged.pop("group")
    for key, value in cli_cfg.items():
        if value is not None:
            merged[key] = value
    return merged
