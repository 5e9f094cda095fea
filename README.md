# httpfromtcp

A small HTTP/1.1 implementation written directly on TCP sockets. It uses only
the Python standard library.

## Library

- `httpfromtcp.headers`: `Headers` is a `dict` that stores field names in
  lower case. `get`, `set`, `override` and `remove` ignore the case of the
  key. `set` joins a repeated field to the existing value with `", "`, and
  `override` replaces the existing value. `Headers.parse(data)` parses at most
  one header line. It returns `(bytes_consumed, done)`, where `done` is true
  once the blank line that ends the header section is reached. It raises
  `HeaderError` for a line that has no colon, has a space before the colon, or
  has a name with characters other than letters, digits and `-`.
- `httpfromtcp.request`: `request_from_reader(reader)` reads one request from
  any object whose `read(size)` returns bytes and returns `b""` at end of
  stream. It returns a `Request` with `request_line` (a `RequestLine` with
  `method`, `request_target` and `http_version`), `headers` and `body`. The
  method must consist of upper-case letters and the version must be
  `HTTP/1.1`. The body is read only when a `Content-Length` header is
  present. Malformed or incomplete input raises `RequestError`. For
  incremental use, `parse_request_line(data)` and `Request.parse(data)` are
  also available.
- `httpfromtcp.response`: `Writer(stream)` writes the parts of a response in
  order: `write_status_line`, `write_headers`, and then either `write_body` or
  `write_chunked_body` followed by `write_chunked_body_done` and
  `write_trailers`. A call made out of order raises `WriterStateError`.
  `StatusCode` defines `SUCCESS` (200), `BAD_REQUEST` (400) and
  `INTERNAL_SERVER_ERROR` (500). `status_line(code)` builds the status line;
  codes outside those three get an empty reason phrase.
  `get_default_headers(n)` returns `Content-Length: n`, `Connection: close`
  and `Content-Type: text/plain`.
- `httpfromtcp.server`: `serve(port, handler)` listens on all interfaces and
  serves each connection on its own thread. It returns a `Server`, which is a
  context manager and can also be stopped with `close()`. Passing port `0`
  picks a free port, which is then available as `Server.port`. The server
  calls `handler(writer, request)` for every request it parses. If a request
  cannot be parsed, it answers `400 Bad Request` with a plain-text body that
  describes the error.

```python
from httpfromtcp.response import StatusCode, get_default_headers
from httpfromtcp.server import serve


def hello(writer, request):
    body = b"hello from " + request.request_line.request_target.encode()
    writer.write_status_line(StatusCode.SUCCESS)
    writer.write_headers(get_default_headers(len(body)))
    writer.write_body(body)


with serve(8080, hello):
    input("Serving on port 8080, press Enter to stop\n")
```

## Commands

```
httpfromtcp-server [--port PORT]
```

Serves on port 42069 by default and runs until it receives SIGINT or SIGTERM.
The handlers live in `httpfromtcp.httpserver`:

- `/myproblem`: a `500 Internal Server Error` HTML page.
- `/video`: serves `assets/vim.mp4` from the working directory as `video/mp4`.
  If the file cannot be read, it answers with the 500 page instead.
- `/httpbin/...`: fetches the rest of the path from httpbin.org and relays it
  as a chunked `200` response. After the body it sends the trailers
  `X-Content-SHA256` and `X-Content-Length`. If the upstream request cannot
  be made, it answers with the 500 page.
- `/yourproblem` and every other path: a `200 OK` HTML page.

```
httpfromtcp-tcplistener [--port PORT]
```

Listens on port 42069 by default. For each connection it reads one request and
prints the request line, headers and body. The command exits if a request
cannot be parsed.

```
httpfromtcp-udpsender [--host HOST] [--port PORT]
```

Reads lines from standard input and sends each one as a UDP datagram. The
default destination is `localhost:42069`. It stops at end of input.

## Limitations

- Each connection carries a single request, and responses are sent with
  `Connection: close`. There is no keep-alive.
- Request bodies are read only by `Content-Length`. Chunked request bodies
  are not decoded, and any body sent without a `Content-Length` header is
  ignored.
- Only HTTP/1.1 requests are accepted. There is no TLS support.

## Tests

```
pip install .[test]
pytest
```