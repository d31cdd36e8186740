from __future__ import annotations

import ipaddress
import socket
import struct
from dataclasses import dataclass
from typing import Any, Callable

from mcastdump.core.errors import BindError, JoinError, SocketCreateError


@dataclass
class CaptureSession:
    """An open, bound and group-joined UDP socket."""

    sock: Any
    bound: tuple[str, int]
    group: str

    def close(self) -> None:
        if self.sock is not None:
            self.sock.close()
            self.sock = None


def _membership_request(group: str) -> bytes:
    # struct ip_mreq: group address, then the interface (INADDR_ANY lets the kernel pick).
    return struct.pack("=4sL", socket.inet_aton(group), socket.INADDR_ANY)


def open_and_join(
    group: str,
    port: int,
    *,
    socket_factory: Callable[..., Any] = socket.socket,
) -> CaptureSession:
    try:
        if not ipaddress.IPv4Address(group).is_multicast:
            raise JoinError(f"{group} is not a multicast address")
    except ipaddress.AddressValueError:
        raise JoinError(f"{group!r} is not a dotted-decimal IPv4 address") from None
    if not 0 <= int(port) <= 65535:
        raise BindError(f"port out of range: {port}")

    try:
        sock = socket_factory(socket.AF_INET, socket.SOCK_DGRAM, socket.IPPROTO_UDP)
    except OSError as e:
        raise SocketCreateError(e.strerror or str(e)) from e

    try:
        # Several receivers may share the port, as usual for multicast.
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        except OSError as e:
            raise SocketCreateError(f"reusing address failed: {e.strerror or e}") from e

        bound = ("0.0.0.0", int(port))
        try:
            sock.bind(("", int(port)))
        except OSError as e:
            raise BindError(f"0.0.0.0:{port}: {e.strerror or e}") from e

        try:
            sock.setsockopt(socket.IPPROTO_IP, socket.IP_ADD_MEMBERSHIP, _membership_request(group))
        except OSError as e:
            raise JoinError(f"{group}: {e.strerror or e}") from e
    except BaseException:
        sock.close()
        raise

    return CaptureSession(sock=sock, bound=bound, group=group)
