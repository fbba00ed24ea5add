"""Request-level HTTP helpers: MIME lookup, URL decoding, argument and header parsing."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

__all__ = [
    "MIME_TYPES",
    "DEFAULT_MIMETYPE",
    "get_mimetype",
    "url_decode",
    "find_arg",
    "RequestHead",
]

MIME_TYPES: dict[str, str] = {
    "htm": "text/htm",
    "html": "text/html",
    "css": "text/css",
    "js": "text/javascript",
    "txt": "text/plain",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "svg": "image/svg+xml",
}
DEFAULT_MIMETYPE = "text/html"

_HEX = "0123456789abcdefABCDEF"
_LEADING_JUNK = "".join(chr(i) for i in range(1, 33))
_LINE_SPLIT = re.compile(r"\r?\n")


def get_mimetype(url: str) -> str:
    """Return the MIME type for *url* judged by its extension (case sensitive)."""
    ext = url.rpartition(".")[2] if "." in url else url
    return MIME_TYPES.get(ext, DEFAULT_MIMETYPE)


def _hex_value(byte: int) -> int:
    ch = chr(byte)
    return int(ch, 16) if ch in _HEX else 0


def url_decode(value: str | bytes, limit: int | None = None) -> str:
    """Decode a percent-encoded value; ``+`` becomes a space.

    At most *limit* decoded bytes are produced. Invalid hex digits count as zero
    and an escape cut off at the end of the input is dropped.
    """
    raw = value.encode("utf-8") if isinstance(value, str) else bytes(value)
    out = bytearray()
    escaped = 0
    esc_value = 0
    for byte in raw:
        if limit is not None and len(out) >= limit:
            break
        if escaped == 1:
            esc_value = _hex_value(byte) << 4
            escaped = 2
        elif escaped == 2:
            out.append(esc_value + _hex_value(byte))
            escaped = 0
        elif byte == ord("%"):
            escaped = 1
        elif byte == ord("+"):
            out.append(ord(" "))
        else:
            out.append(byte)
    return out.decode("utf-8", "replace")


def find_arg(line: str | None, arg: str, limit: int | None = None) -> str | None:
    """Return the decoded value of *arg* in GET or POST data *line*, or None."""
    if line is None:
        return None
    wanted = arg + "="
    pos = 0
    while pos < len(line) and line[pos] not in "\r\n\0":
        if line.startswith(wanted, pos):
            start = pos + len(wanted)
            end = line.find("&", start)
            if end < 0:
                end = len(line)
            return url_decode(line[start:end], limit)
        pos = line.find("&", pos)
        if pos < 0:
            break
        pos += 1
    return None


def _atoi(text: str) -> int:
    match = re.match(r"\s*([+-]?\d+)", text)
    return int(match.group(1)) if match else 0


@dataclass
class RequestHead:
    """The parsed head of an HTTP request."""

    method: str | None = None
    url: str | None = None
    args: str | None = None
    http11: bool = False
    host: str | None = None
    connection_close: bool = False
    content_length: int = 0
    multipart_boundary: str | None = None
    lines: list[str] = field(default_factory=list)

    @classmethod
    def parse(cls, raw: str | bytes) -> "RequestHead":
        """Parse request line and headers up to the first empty line."""
        text = raw.decode("latin-1") if isinstance(raw, (bytes, bytearray, memoryview)) else raw
        if isinstance(text, memoryview):
            text = bytes(text).decode("latin-1")
        head = cls()
        all_lines = _LINE_SPLIT.split(text)
        for index, line in enumerate(all_lines):
            if line == "":
                break
            if index > 0:
                head.lines.append(line)
            head._parse_line(line)
        return head

    def _parse_line(self, line: str) -> None:
        first_line = False
        if line.startswith("GET "):
            self.method = "GET"
            first_line = True
        elif line.startswith("Host:"):
            self.host = line[5:].lstrip(" ")
        elif line.startswith("POST "):
            self.method = "POST"
            first_line = True

        if first_line:
            rest = line[line.index(" ") + 1:]
            self.url = rest
            space = rest.find(" ")
            if space < 0:
                return
            self.url = rest[:space]
            protocol = rest[space + 1:].lstrip(" ")
            if protocol.lower() == "http/1.1":
                self.http11 = True
            if "?" in self.url:
                self.url, self.args = self.url.split("?", 1)
            else:
                self.args = None
        elif line.startswith("Connection:"):
            if line[11:].lstrip(" ").startswith("close"):
                self.connection_close = True
        elif line.startswith("Content-Length:"):
            self.content_length = _atoi(line[15:].lstrip(" "))
        elif line.startswith("Content-Type: "):
            if "multipart/form-data" in line:
                at = line.find("boundary=")
                if at >= 0:
                    self.multipart_boundary = "--" + line[at + len("boundary="):]

    def header(self, name: str) -> str | None:
        """Return the value of header *name* (case sensitive), or None."""
        key = name + ":"
        for line in self.lines:
            stripped = line.lstrip(_LEADING_JUNK)
            if stripped.startswith(key):
                return stripped[len(key):].lstrip(" ")
        return None