"""Incremental parsing of HTTP/1.1 requests read from a byte stream."""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass, field
from typing import Protocol

from .headers import CRLF, Headers

_INITIAL_READ_SIZE = 8
_INTEGER = re.compile(r"[+-]?[0-9]+")


class RequestError(ValueError):
    """Raised when a request is malformed or incomplete."""


class Reader(Protocol):
    def read(self, size: int, /) -> bytes: ...


class _State(enum.Enum):
    INITIALIZED = enum.auto()
    PARSING_HEADERS = enum.auto()
    PARSING_BODY = enum.auto()
    DONE = enum.auto()


@dataclass
class RequestLine:
    """The method, target and version from the first line of a request."""

    method: str = ""
    request_target: str = ""
    http_version: str = ""


def _request_line_from_string(text: str) -> RequestLine:
    parts = text.split(" ")
    if len(parts) != 3:
        raise RequestError(f"poorly formatted request-line: {text}")
    method, target, version_text = parts

    if not all("A" <= char <= "Z" for char in method):
        raise RequestError(f"invalid method: {method}")

    version_parts = version_text.split("/")
    if len(version_parts) != 2:
        raise RequestError(f"malformed start-line: {text}")
    protocol, version = version_parts
    if protocol != "HTTP":
        raise RequestError(f"unrecognized HTTP-version: {protocol}")
    if version != "1.1":
        raise RequestError(f"unrecognized HTTP-version: {version}")

    return RequestLine(method=method, request_target=target, http_version=version)


def parse_request_line(data: bytes) -> tuple[RequestLine | None, int]:
    """Parse the request line at the start of ``data``.

    Returns ``(None, 0)`` while the line is not yet complete, otherwise the
    parsed line and the number of bytes consumed including the CRLF.
    """
    idx = data.find(CRLF)
    if idx == -1:
        return None, 0
    text = bytes(data[:idx]).decode("utf-8", "surrogateescape")
    return _request_line_from_string(text), idx + 2


@dataclass
class Request:
    """An HTTP request built up as bytes are fed to :meth:`parse`."""

    request_line: RequestLine = field(default_factory=RequestLine)
    headers: Headers = field(default_factory=Headers)
    body: bytes = b""
    _state: _State = field(default=_State.INITIALIZED, init=False, repr=False)
    _body_length_read: int = field(default=0, init=False, repr=False)

    def parse(self, data: bytes) -> int:
        """Consume as much of ``data`` as possible and return the byte count."""
        total = 0
        while self._state is not _State.DONE:
            consumed = self._parse_single(data[total:])
            total += consumed
            if consumed == 0:
                break
        return total

    def _parse_single(self, data: bytes) -> int:
        if self._state is _State.INITIALIZED:
            request_line, consumed = parse_request_line(data)
            if request_line is None:
                return 0
            self.request_line = request_line
            self._state = _State.PARSING_HEADERS
            return consumed

        if self._state is _State.PARSING_HEADERS:
            consumed, done = self.headers.parse(data)
            if done:
                self._state = _State.PARSING_BODY
            return consumed

        if self._state is _State.PARSING_BODY:
            length_text = self.headers.get("Content-Length")
            if length_text is None:
                self._state = _State.DONE
                return len(data)
            if not _INTEGER.fullmatch(length_text):
                raise RequestError(f"malformed Content-Length: {length_text!r}")
            content_length = int(length_text)
            self.body += bytes(data)
            self._body_length_read += len(data)
            if self._body_length_read > content_length:
                raise RequestError("Content-Length too large")
            if self._body_length_read == content_length:
                self._state = _State.DONE
            return len(data)

        raise RequestError("trying to read data in a done state")


def request_from_reader(reader: Reader) -> Request:
    """Read and parse one request from ``reader``.

    ``reader.read(size)`` must return at most ``size`` bytes and an empty
    bytes object at end of stream.
    """
    request = Request()
    pending = bytearray()
    capacity = _INITIAL_READ_SIZE
    while request._state is not _State.DONE:
        if len(pending) >= capacity:
            capacity *= 2
        chunk = reader.read(capacity - len(pending))
        if not chunk:
            raise RequestError(
                f"incomplete request, in state: {request._state.name.lower()}"
            )
        pending += chunk
        consumed = request.parse(bytes(pending))
        del pending[:consumed]
    return request