"""The demo HTTP server: canned pages, a chunked proxy and a video file."""

from __future__ import annotations

import argparse
import contextlib
import hashlib
import logging
import signal
import threading
from pathlib import Path
from urllib.error import HTTPError, URLError
from urllib.request import urlopen

from .headers import Headers
from .request import Request
from .response import StatusCode, Writer, get_default_headers
from .server import serve

logger = logging.getLogger(__name__)

PORT = 42069
PROXY_PREFIX = "/httpbin"
PROXY_BASE_URL = "https://httpbin.org/"
MAX_CHUNK_SIZE = 1024
VIDEO_PATH = Path("assets/vim.mp4")

_PAGE_400 = """<html>
<head>
<title>400 Bad Request</title>
</head>
<body>
<h1>Bad Request</h1>
<p>Your request honestly kinda sucked.</p>
</body>
</html>
"""

_PAGE_500 = """<html>
<head>
<title>500 Internal Server Error</title>
</head>
<body>
<h1>Internal Server Error</h1>
<p>Okay, you know what? This one is on me.</p>
</body>
</html>
"""

_PAGE_200 = """<html>
<head>
<title>200 OK</title>
</head>
<body>
<h1>Success!</h1>
<p>Your request was an absolute banger.</p>
</body>
</html>
"""


def _write_page(writer: Writer, status: StatusCode, page: str) -> None:
    body = page.encode()
    writer.write_status_line(status)
    headers = get_default_headers(len(body))
    headers.override("Content-Type", "text/html")
    writer.write_headers(headers)
    writer.write_body(body)


def handler(writer: Writer, request: Request) -> None:
    """Route a request to the handler for its target."""
    target = request.request_line.request_target
    if target.startswith(PROXY_PREFIX):
        proxy_handler(writer, request)
    elif target == "/yourproblem":
        handler200(writer, request)
    elif target == "/myproblem":
        handler500(writer, request)
    elif target == "/video":
        video_handler(writer, request)
    else:
        handler200(writer, request)


def handler400(writer: Writer, request: Request) -> None:
    _write_page(writer, StatusCode.BAD_REQUEST, _PAGE_400)


def handler500(writer: Writer, request: Request) -> None:
    _write_page(writer, StatusCode.INTERNAL_SERVER_ERROR, _PAGE_500)


def handler200(writer: Writer, request: Request) -> None:
    _write_page(writer, StatusCode.SUCCESS, _PAGE_200)


def proxy_handler(writer: Writer, request: Request) -> None:
    """Relay the upstream response as a chunked body with hash trailers."""
    target = request.request_line.request_target.removeprefix(PROXY_PREFIX + "/")
    url = PROXY_BASE_URL + target
    logger.info("Proxying to %s", url)
    try:
        upstream = urlopen(url)
    except HTTPError as err:
        upstream = err
    except (URLError, OSError, ValueError) as err:
        logger.warning("Proxy request failed: %s", err)
        handler500(writer, request)
        return

    writer.write_status_line(StatusCode.SUCCESS)
    headers = get_default_headers(0)
    headers.override("Transfer-Encoding", "chunked")
    headers.override("Trailer", "X-Content-SHA256, X-Content-Length")
    headers.remove("Content-Length")
    writer.write_headers(headers)

    full_body = bytearray()
    with contextlib.closing(upstream):
        while True:
            try:
                chunk = upstream.read(MAX_CHUNK_SIZE)
            except OSError as err:
                logger.warning("Error reading response body: %s", err)
                break
            logger.debug("Read %d bytes", len(chunk))
            if not chunk:
                break
            try:
                writer.write_chunked_body(chunk)
            except OSError as err:
                logger.warning("Error writing chunked body: %s", err)
                break
            full_body += chunk

    try:
        writer.write_chunked_body_done()
    except OSError as err:
        logger.warning("Error writing chunked body done: %s", err)

    trailers = Headers()
    trailers.override("X-Content-SHA256", hashlib.sha256(full_body).hexdigest())
    trailers.override("X-Content-Length", str(len(full_body)))
    try:
        writer.write_trailers(trailers)
    except (OSError, RuntimeError) as err:
        logger.warning("Error writing trailers: %s", err)
        return
    logger.debug("Wrote trailers")


def video_handler(writer: Writer, request: Request) -> None:
    """Serve the video file from the assets directory."""
    try:
        video = VIDEO_PATH.read_bytes()
    except OSError:
        handler500(writer, request)
        return
    writer.write_status_line(StatusCode.SUCCESS)
    headers = get_default_headers(len(video))
    headers.override("Content-Type", "video/mp4")
    writer.write_headers(headers)
    writer.write_body(video)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="httpserver", description="Run the HTTP server.")
    parser.add_argument("--port", type=int, default=PORT)
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO)

    try:
        server = serve(args.port, handler)
    except OSError as err:
        logger.error("Error starting server: %s", err)
        return 1

    stop = threading.Event()
    with server:
        logger.info("Server started on port %d", server.port)
        previous = {
            sig: signal.signal(sig, lambda *_: stop.set())
            for sig in (signal.SIGINT, signal.SIGTERM)
        }
        try:
            while not stop.wait(0.5):
                pass
        finally:
            for sig, old in previous.items():
                signal.signal(sig, old)
    logger.info("Server gracefully stopped")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())