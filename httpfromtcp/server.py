"""A threaded HTTP/1.1 server built directly on TCP sockets."""

from __future__ import annotations

import logging
import socket
import threading
from typing import Callable

from .request import Request, request_from_reader
from .response import StatusCode, Writer, get_default_headers

Handler = Callable[[Writer, Request], None]

logger = logging.getLogger(__name__)

_ACCEPT_POLL_INTERVAL = 0.25


def _bind(port: int) -> socket.socket:
    if socket.has_dualstack_ipv6():
        return socket.create_server(
            ("", port), family=socket.AF_INET6, dualstack_ipv6=True
        )
    return socket.create_server(("", port))


def _write_bad_request(writer: Writer, error: Exception) -> None:
    body = f"Error parsing request: {error}".encode("utf-8", "replace")
    try:
        writer.write_status_line(StatusCode.BAD_REQUEST)
        writer.write_headers(get_default_headers(len(body)))
        writer.write_body(body)
    except OSError as err:
        logger.warning("Error writing bad request response: %s", err)


class Server:
    """Accepts connections in the background and serves one request on each."""

    def __init__(self, handler: Handler, listener: socket.socket) -> None:
        self._handler = handler
        self._listener = listener
        self._closed = threading.Event()
        self.port: int = listener.getsockname()[1]
        listener.settimeout(_ACCEPT_POLL_INTERVAL)
        self._thread = threading.Thread(
            target=self._listen, name="httpfromtcp-accept", daemon=True
        )
        self._thread.start()

    def __enter__(self) -> Server:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        """Stop accepting connections and release the listening socket."""
        self._closed.set()
        self._listener.close()
        if self._thread is not threading.current_thread():
            self._thread.join()

    def _listen(self) -> None:
        while not self._closed.is_set():
            try:
                conn, _ = self._listener.accept()
            except TimeoutError:
                continue
            except OSError as err:
                if self._closed.is_set():
                    return
                logger.error("Error accepting connection: %s", err)
                continue
            conn.settimeout(None)
            threading.Thread(target=self._handle, args=(conn,), daemon=True).start()

    def _handle(self, conn: socket.socket) -> None:
        with conn, conn.makefile("rwb", buffering=0) as stream:
            writer = Writer(stream)
            try:
                request = request_from_reader(stream)
            except (ValueError, OSError) as err:
                _write_bad_request(writer, err)
                return
            try:
                self._handler(writer, request)
            except Exception:
                logger.exception("Handler failed for %s", request.request_line)


def serve(port: int, handler: Handler) -> Server:
    """Listen on ``port`` on all interfaces and serve requests with ``handler``.

    Port 0 picks a free port; the chosen one is available as ``Server.port``.
    """
    return Server(handler, _bind(port))