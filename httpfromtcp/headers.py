"""Case-insensitive HTTP header fields and the parser for header lines."""

from __future__ import annotations

CRLF = b"\r\n"

_TOKEN_BYTES = frozenset(
    b"ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-"
)


class HeaderError(ValueError):
    """Raised when a header line cannot be parsed."""


def _decode(raw: bytes) -> str:
    return raw.decode("utf-8", "surrogateescape")


class Headers(dict):
    """Header fields keyed by their lower-case name."""

    def parse(self, data: bytes) -> tuple[int, bool]:
        """Parse at most one header line from ``data``.

        Returns the number of bytes consumed and whether the blank line
        ending the header section was reached. Nothing is consumed while
        no complete line is available.
        """
        idx = data.find(CRLF)
        if idx == -1:
            return 0, False
        if idx == 0:
            return 2, True

        line = bytes(data[:idx])
        name, sep, value = line.partition(b":")
        if not sep:
            raise HeaderError(f"malformed header line: {_decode(line)}")

        name = name.lower()
        if name != name.rstrip(b" "):
            raise HeaderError(f"invalid header name: {_decode(name)}")
        name = name.strip()
        if not all(byte in _TOKEN_BYTES for byte in name):
            raise HeaderError(f"invalid header token found: {_decode(name)}")

        self.set(_decode(name), _decode(value.strip()))
        return idx + 2, False

    def get(self, key: str, default: str | None = None) -> str | None:
        """Return the value stored under ``key``, ignoring case."""
        return super().get(key.lower(), default)

    def set(self, key: str, value: str) -> None:
        """Store ``value``, appending it to an existing value with ", "."""
        key = key.lower()
        existing = super().get(key)
        if existing is not None:
            value = f"{existing}, {value}"
        self[key] = value

    def override(self, key: str, value: str) -> None:
        """Store ``value``, replacing any existing value."""
        self[key.lower()] = value

    def remove(self, key: str) -> None:
        """Delete ``key`` if present."""
        self.pop(key.lower(), None)