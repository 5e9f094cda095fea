"""Writing HTTP/1.1 responses, including chunked bodies and trailers."""

from __future__ import annotations

import enum
from typing import Mapping, Protocol

from .headers import Headers

CRLF = b"\r\n"


class StatusCode(enum.IntEnum):
    SUCCESS = 200
    BAD_REQUEST = 400
    INTERNAL_SERVER_ERROR = 500


_REASON_PHRASES = {
    StatusCode.SUCCESS: "OK",
    StatusCode.BAD_REQUEST: "Bad Request",
    StatusCode.INTERNAL_SERVER_ERROR: "Internal Server Error",
}


class WriterStateError(RuntimeError):
    """Raised when a response part is written out of order."""


class Stream(Protocol):
    def write(self, data: bytes, /) -> int | None: ...


class _WriterState(enum.Enum):
    STATUS_LINE = enum.auto()
    HEADERS = enum.auto()
    BODY = enum.auto()
    TRAILERS = enum.auto()


def _encode(text: str) -> bytes:
    return text.encode("utf-8", "surrogateescape")


def status_line(status_code: int) -> bytes:
    """Return the status line for ``status_code``, reason phrase included."""
    code = int(status_code)
    reason = _REASON_PHRASES.get(code, "")
    return _encode(f"HTTP/1.1 {code} {reason}\r\n")


def get_default_headers(content_len: int) -> Headers:
    """Headers for a plain-text response of ``content_len`` bytes."""
    headers = Headers()
    headers.set("Content-Length", str(content_len))
    headers.set("Connection", "close")
    headers.set("Content-Type", "text/plain")
    return headers


def _field_lines(headers: Mapping[str, str]) -> bytes:
    lines = b"".join(_encode(f"{key}: {value}\r\n") for key, value in headers.items())
    return lines + CRLF


class Writer:
    """Writes the parts of one response to a binary stream, in order."""

    def __init__(self, stream: Stream) -> None:
        self._stream = stream
        self._state = _WriterState.STATUS_LINE

    def _require(self, state: _WriterState, what: str) -> None:
        if self._state is not state:
            raise WriterStateError(
                f"cannot write {what} in state {self._state.name.lower()}"
            )

    def _write(self, data: bytes) -> int:
        view = memoryview(data)
        total = 0
        while total < len(view):
            written = self._stream.write(view[total:])
            if written is None:
                written = len(view) - total
            if written <= 0:
                raise OSError("stream accepted no bytes")
            total += written
        return total

    def write_status_line(self, status_code: int) -> None:
        self._require(_WriterState.STATUS_LINE, "status line")
        try:
            self._write(status_line(status_code))
        finally:
            self._state = _WriterState.HEADERS

    def write_headers(self, headers: Mapping[str, str]) -> None:
        self._require(_WriterState.HEADERS, "headers")
        try:
            self._write(_field_lines(headers))
        finally:
            self._state = _WriterState.BODY

    def write_body(self, data: bytes) -> int:
        self._require(_WriterState.BODY, "body")
        return self._write(data)

    def write_chunked_body(self, data: bytes) -> int:
        """Write ``data`` as one chunk; returns the bytes put on the wire."""
        self._require(_WriterState.BODY, "body")
        total = self._write(_encode(f"{len(data):x}\r\n"))
        total += self._write(data)
        total += self._write(CRLF)
        return total

    def write_chunked_body_done(self) -> int:
        """Write the terminating zero-length chunk."""
        self._require(_WriterState.BODY, "body")
        written = self._write(b"0\r\n")
        self._state = _WriterState.TRAILERS
        return written

    def write_trailers(self, headers: Mapping[str, str]) -> None:
        self._require(_WriterState.TRAILERS, "trailers")
        try:
            self._write(_field_lines(headers))
        finally:
            self._state = _WriterState.BODY