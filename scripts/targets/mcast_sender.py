#!/usr/bin/env python3
from __future__ import annotations

import argparse
import socket
import time


def main() -> int:
    ap = argparse.ArgumentParser(description="Multicast UDP sender (mcastdump test source)")
    ap.add_argument("--group", default="239.1.1.1")
    ap.add_argument("--port", type=int, default=5000)
    ap.add_argument("--ttl", type=int, default=1)
    ap.add_argument("--no-loop", action="store_true", help="Disable IP_MULTICAST_LOOP")
    ap.add_argument("--interval-s", type=float, default=0.1)
    ap.add_argument("payloads", nargs="*", default=["A", "BB", "CCC"])
    args = ap.parse_args()

    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM, socket.IPPROTO_UDP)
    sock.setsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_TTL, args.ttl)
    sock.setsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_LOOP, 0 if args.no_loop else 1)
    try:
        for payload in args.payloads:
            sock.sendto(payload.encode("utf-8"), (args.group, args.port))
            print(f"sent {len(payload)} bytes to {args.group}:{args.port}")
            time.sleep(args.interval_s)
    finally:
        sock.close()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
