from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any

from mcastdump import __version__
from mcastdump.core.artifacts import open_event_logger
from mcastdump.core.cancel import CancelToken, install_signal_handlers
from mcastdump.core.capture import run_capture
from mcastdump.core.config import CaptureConfig, load_config_file, merge_config, parse_capture_config
from mcastdump.core.errors import ArgumentError, CaptureError, SinkOpenError
from mcastdump.core.membership import open_and_join
from mcastdump.core.sink import close_sink, open_sink


def _report(err: CaptureError) -> None:
    print(f"mcastdump: {err}", file=sys.stderr)


def _cli_values(args: argparse.Namespace) -> dict[str, Any]:
    return {
        "address": args.address,
        "port": args.port,
        "lifetime": args.lifetime,
        "output": args.output,
        "recv_buf": args.recv_buf,
        "unbuffered": args.unbuffered,
        "events": args.events,
    }


def _resolve_config(parser: argparse.ArgumentParser, args: argparse.Namespace) -> CaptureConfig:
    try:
        file_cfg = load_config_file(Path(args.config)) if args.config else {}
        return parse_capture_config(merge_config(file_cfg, _cli_values(args)))
    except ArgumentError as e:
        parser.error(e.detail or str(e))


def _capture(cfg: CaptureConfig) -> int:
    try:
        events = open_event_logger(cfg.events)
    except OSError as e:
        raise SinkOpenError(f"{cfg.events}: {e.strerror or e}") from e

    token = CancelToken()
    try:
        events.log(
            {
                "event": "start",
                "tool": {"name": "mcastdump", "version": __version__},
                "group": cfg.group,
                "port": cfg.port,
                "lifetime_s": cfg.lifetime_s,
                "output": str(cfg.output) if cfg.output else "-",
            }
        )
        # Until the loop starts, Ctrl+C raises KeyboardInterrupt so a blocking
        # open (e.g. a FIFO with no reader) can still be interrupted.
        session = open_and_join(cfg.group, cfg.port)
        try:
            events.log({"event": "joined", "bound": list(session.bound), "group": session.group})
            sink = open_sink(cfg.output)
            try:
                with install_signal_handlers(token):
                    token.arm(cfg.lifetime_s)
                    run_capture(
                        session,
                        sink,
                        token,
                        recv_buf=cfg.recv_buf,
                        unbuffered=cfg.unbuffered,
                        events=events,
                    )
            finally:
                close_sink(sink, owned=cfg.output is not None)
        finally:
            session.close()
    except KeyboardInterrupt:
        events.log({"event": "stop", "datagrams": 0, "bytes": 0, "reason": "interrupt"})
    except CaptureError as e:
        events.log({"event": "error", "step": e.step, "detail": e.detail})
        raise
    finally:
        token.close()
        events.close()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mcastdump",
        description="Join an IPv4 multicast group and dump every received UDP payload, raw, to stdout or a file.",
        epilog="Example: mcastdump -a 239.1.1.1 -p 5000 -t 0 -o capture.bin",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-a", "--address", default=None, help="Multicast IPv4 group address, a.b.c.d")
    parser.add_argument("-p", "--port", type=int, default=None, help="UDP port number")
    parser.add_argument(
        "-t",
        "--lifetime",
        type=int,
        default=None,
        help="Terminate after this many seconds; 0 means run until interrupted",
    )
    parser.add_argument("-o", "--output", default=None, help="Output file (default: stdout)")
    parser.add_argument("-c", "--config", default=None, help="YAML or JSON file with the same settings")
    parser.add_argument("--events", default=None, help="Write a JSONL event log to this path")
    parser.add_argument(
        "--recv-buf",
        type=int,
        default=None,
        help="Receive buffer size in bytes, clamped to 1..1048576 (default: 65535)",
    )
    parser.add_argument(
        "-u",
        "--unbuffered",
        action="store_true",
        default=None,
        help="Flush the output after every datagram",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    cfg = _resolve_config(parser, args)
    try:
        return _capture(cfg)
    except CaptureError as e:
        _report(e)
        return 1
