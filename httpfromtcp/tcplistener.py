"""Accept TCP connections and print each parsed HTTP request."""

from __future__ import annotations

import argparse
import socket
import sys

from .request import Request, request_from_reader

PORT = 42069


def format_request(request: Request) -> str:
    """Render a request as the listener prints it."""
    line = request.request_line
    lines = [
        "Request line:",
        f"- Method: {line.method}",
        f"- Target: {line.request_target}",
        f"- Version: {line.http_version}",
        "Headers:",
    ]
    lines.extend(f" - {key}: {value}" for key, value in request.headers.items())
    lines.append("Body:")
    lines.append(request.body.decode("utf-8", "replace"))
    return "\n".join(lines) + "\n"


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="tcplistener", description="Print HTTP requests received over TCP."
    )
    parser.add_argument("--port", type=int, default=PORT)
    args = parser.parse_args(argv)

    try:
        listener = socket.create_server(("", args.port))
    except OSError as err:
        print(f"error listening for TCP traffic: {err}", file=sys.stderr)
        return 1

    with listener:
        print(f"Listening for TCP traffic on :{args.port}", flush=True)
        while True:
            try:
                conn, address = listener.accept()
            except OSError as err:
                print(f"error: {err}", file=sys.stderr)
                return 1
            with conn, conn.makefile("rb", buffering=0) as stream:
                host, port = address[0], address[1]
                print(f"Accepted connection from {host}:{port}", flush=True)
                try:
                    request = request_from_reader(stream)
                except (ValueError, OSError) as err:
                    print(f"error parsing request: {err}", file=sys.stderr)
                    return 1
                print(format_request(request), end="", flush=True)


if __name__ == "__main__":
    raise SystemExit(main())