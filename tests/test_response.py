import io

import pytest

from httpfromtcp.headers import Headers
from httpfromtcp.response import (
    StatusCode,
    Writer,
    WriterStateError,
    get_default_headers,
    status_line,
)


class TrickleStream:
    """Accepts at most three bytes per write call."""

    def __init__(self):
        self.data = bytearray()

    def write(self, chunk):
        taken = bytes(chunk[:3])
        self.data += taken
        return len(taken)


def split_response(raw):
    """Split raw response bytes into status line, headers and the remainder."""
    line_end = raw.index(b"\r\n")
    status = raw[:line_end]
    rest = raw[line_end + 2:]
    headers = Headers()
    while True:
        consumed, done = headers.parse(rest)
        rest = rest[consumed:]
        if done:
            return status, headers, rest


def decode_chunked(raw):
    """Decode a chunked body followed by trailers."""
    body = b""
    while True:
        size_end = raw.index(b"\r\n")
        size = int(raw[:size_end], 16)
        raw = raw[size_end + 2:]
        if size == 0:
            break
        body += raw[:size]
        assert raw[size:size + 2] == b"\r\n"
        raw = raw[size + 2:]
    trailers = Headers()
    while True:
        consumed, done = trailers.parse(raw)
        raw = raw[consumed:]
        if done:
            return body, trailers, raw


def test_status_line_success_wire_bytes():
    assert status_line(StatusCode.SUCCESS) == b"HTTP/1.1 200 OK\r\n"


@pytest.mark.parametrize(
    "code, reason",
    [
        (StatusCode.SUCCESS, b"OK"),
        (StatusCode.BAD_REQUEST, b"Bad Request"),
        (StatusCode.INTERNAL_SERVER_ERROR, b"Internal Server Error"),
    ],
)
def test_status_line_shape(code, reason):
    line = status_line(code)
    assert line.startswith(b"HTTP/1.1 ")
    assert line.endswith(reason + b"\r\n")
    assert str(int(code)).encode() in line


def test_status_line_unknown_code_has_empty_reason():
    assert status_line(404) == b"HTTP/1.1 404 \r\n"


def test_default_headers():
    headers = get_default_headers(13)
    assert headers["content-length"] == "13"
    assert headers["connection"] == "close"
    assert headers["content-type"] == "text/plain"
    assert len(headers) == 3


def test_default_headers_can_be_overridden():
    headers = get_default_headers(5)
    headers.override("Content-Type", "text/html")
    assert headers.get("content-type") == "text/html"


def test_full_response_round_trip():
    body = b"<h1>Success!</h1>"
    out = io.BytesIO()
    writer = Writer(out)
    writer.write_status_line(StatusCode.SUCCESS)
    headers = get_default_headers(len(body))
    headers.override("Content-Type", "text/html")
    writer.write_headers(headers)
    assert writer.write_body(body) == len(body)

    status, parsed, rest = split_response(out.getvalue())
    assert status + b"\r\n" == status_line(StatusCode.SUCCESS)
    assert parsed == headers
    assert rest == body


def test_chunked_round_trip_with_trailers():
    out = io.BytesIO()
    writer = Writer(out)
    writer.write_status_line(StatusCode.SUCCESS)
    headers = get_default_headers(0)
    headers.override("Transfer-Encoding", "chunked")
    headers.remove("Content-Length")
    writer.write_headers(headers)

    pieces = [b"hello ", b"chunked ", b"world" * 10]
    for piece in pieces:
        before = out.tell()
        written = writer.write_chunked_body(piece)
        assert written == out.tell() - before
    before = out.tell()
    assert writer.write_chunked_body_done() == out.tell() - before

    trailers = Headers()
    trailers.override("X-Content-Length", str(len(b"".join(pieces))))
    writer.write_trailers(trailers)

    _, parsed_headers, rest = split_response(out.getvalue())
    assert "content-length" not in parsed_headers
    assert parsed_headers["transfer-encoding"] == "chunked"
    body, parsed_trailers, leftover = decode_chunked(rest)
    assert body == b"".join(pieces)
    assert parsed_trailers == trailers
    assert leftover == b""


def test_chunk_size_is_hexadecimal():
    out = io.BytesIO()
    writer = Writer(out)
    writer.write_status_line(StatusCode.SUCCESS)
    writer.write_headers({})
    start = out.tell()
    writer.write_chunked_body(b"x" * 26)
    assert out.getvalue()[start:].startswith(b"1a\r\n")


def test_partial_writes_are_completed():
    stream = TrickleStream()
    writer = Writer(stream)
    writer.write_status_line(StatusCode.BAD_REQUEST)
    writer.write_headers(get_default_headers(11))
    assert writer.write_body(b"bad request") == 11
    status, headers, rest = split_response(bytes(stream.data))
    assert status + b"\r\n" == status_line(StatusCode.BAD_REQUEST)
    assert headers["content-length"] == "11"
    assert rest == b"bad request"


def test_headers_before_status_line_rejected():
    writer = Writer(io.BytesIO())
    with pytest.raises(WriterStateError):
        writer.write_headers(get_default_headers(0))


def test_body_before_headers_rejected():
    out = io.BytesIO()
    writer = Writer(out)
    writer.write_status_line(StatusCode.SUCCESS)
    with pytest.raises(WriterStateError):
        writer.write_body(b"data")
    assert out.getvalue() == status_line(StatusCode.SUCCESS)


def test_status_line_twice_rejected():
    writer = Writer(io.BytesIO())
    writer.write_status_line(StatusCode.SUCCESS)
    with pytest.raises(WriterStateError):
        writer.write_status_line(StatusCode.SUCCESS)


def test_trailers_before_done_rejected():
    writer = Writer(io.BytesIO())
    writer.write_status_line(StatusCode.SUCCESS)
    writer.write_headers({})
    with pytest.raises(WriterStateError):
        writer.write_trailers({})


def test_chunk_after_done_rejected():
    writer = Writer(io.BytesIO())
    writer.write_status_line(StatusCode.SUCCESS)
    writer.write_headers({})
    writer.write_chunked_body_done()
    with pytest.raises(WriterStateError):
        writer.write_chunked_body(b"late")


def test_body_allowed_after_trailers():
    out = io.BytesIO()
    writer = Writer(out)
    writer.write_status_line(StatusCode.SUCCESS)
    writer.write_headers({})
    writer.write_chunked_body_done()
    writer.write_trailers({})
    assert writer.write_body(b"tail") == 4
    assert out.getvalue().endswith(b"tail")