from __future__ import annotations


class CaptureError(Exception):
    """
    Fatal error raised by the capture tool.

    Every subclass names the operation that failed in `step`, so the command
    line can print a single diagnostic line without tracebacks.
    """

    step = "capture failed"

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail
        super().__init__(self.__str__())

    def __str__(self) -> str:
        if self.detail:
            return f"{self.step}: {self.detail}"
        return self.step


class ArgumentError(CaptureError):
    step = "invalid arguments"


class SocketCreateError(CaptureError):
    step = "socket could not be created"


class BindError(CaptureError):
    step = "bind to receive address failed"


class JoinError(CaptureError):
    step = "could not join multicast group"


class SinkOpenError(CaptureError):
    step = "could not open output file"


class ReceiveError(CaptureError):
    step = "error on socket read"


class SinkWriteError(CaptureError):
    step = "could not write to output"
