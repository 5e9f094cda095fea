"""Send lines typed on standard input as UDP datagrams."""

from __future__ import annotations

import argparse
import socket
import sys
from typing import Iterable, TextIO

HOST = "localhost"
PORT = 42069


def send_lines(lines: Iterable[str], sock: socket.socket, out: TextIO) -> int:
    """Send each complete line through the connected ``sock``.

    A prompt is written before each line is read. Input ends at the end of
    ``lines`` or at a final line without a newline, which is not sent.
    Returns the number of messages sent.
    """
    source = iter(lines)
    sent = 0
    while True:
        out.write("> ")
        out.flush()
        message = next(source, None)
        if message is None or not message.endswith("\n"):
            return sent
        sock.send(message.encode("utf-8"))
        out.write(f"Message sent: {message}")
        sent += 1


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="udpsender", description="Send typed lines over UDP."
    )
    parser.add_argument("--host", default=HOST)
    parser.add_argument("--port", type=int, default=PORT)
    args = parser.parse_args(argv)
    server_address = f"{args.host}:{args.port}"

    try:
        family, kind, proto, _, address = socket.getaddrinfo(
            args.host, args.port, type=socket.SOCK_DGRAM
        )[0]
    except OSError as err:
        print(f"Error resolving UDP address: {err}", file=sys.stderr)
        return 1

    sock = socket.socket(family, kind, proto)
    with sock:
        try:
            sock.connect(address)
        except OSError as err:
            print(f"Error dialing UDP: {err}", file=sys.stderr)
            return 1
        print(
            f"Sending to {server_address}. Type your message and press Enter "
            "to send. Press Ctrl+C to exit."
        )
        try:
            send_lines(sys.stdin, sock, sys.stdout)
        except OSError as err:
            print(f"Error sending message: {err}", file=sys.stderr)
            return 1
        except KeyboardInterrupt:
            return 130
    print("Error reading input: EOF", file=sys.stderr)
    return 1


if __name__ == "__main__":
    raise SystemExit(main())