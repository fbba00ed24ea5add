"""In-memory circular log with timestamps and a JSON view for the web UI."""

from __future__ import annotations

import time
from collections import deque
from typing import Callable

__all__ = ["BUF_MAX", "LogBuffer", "dump_mem"]

BUF_MAX = 1400
_AJAX_LIMIT = 2040


def _default_clock() -> int:
    return int(time.monotonic() * 1_000_000)


class LogBuffer:
    """Circular character log that stamps each new line with the time in ms."""

    def __init__(
        self,
        size: int = BUF_MAX,
        clock: Callable[[], int] | None = None,
        uart: Callable[[str], None] | None = None,
    ) -> None:
        if size < 2:
            raise ValueError("log buffer size must be at least 2")
        self._chars: deque[str] = deque()
        self._capacity = size - 1
        self._position = 0
        self._newline = False
        self._clock = clock or _default_clock
        self._uart = uart
        self.uart_enabled = True

    @property
    def position(self) -> int:
        """Number of characters dropped from the front so far."""
        return self._position

    @property
    def text(self) -> str:
        """Everything currently held in the buffer."""
        return "".join(self._chars)

    def __len__(self) -> int:
        return len(self._chars)

    def _store(self, c: str) -> None:
        if len(self._chars) >= self._capacity:
            self._chars.popleft()
            self._position += 1
        self._chars.append(c)

    def _emit_uart(self, c: str) -> None:
        if self.uart_enabled and self._uart is not None:
            self._uart(c)

    def write_char(self, c: str | int) -> None:
        """Log one character, turning newlines into CR LF."""
        if isinstance(c, int):
            c = chr(c & 0xFF)
        if self._newline:
            stamp = "%6d> " % ((self._clock() // 1000) % 1_000_000)
            for ch in stamp:
                self._emit_uart(ch)
            for ch in stamp:
                self._store(ch)
            self._newline = False
        if c == "\n":
            self._newline = True
            self._emit_uart("\r")
            self._store("\r")
        self._emit_uart(c)
        self._store(c)

    def write(self, text: str) -> None:
        """Log every character of *text*."""
        for c in text:
            self.write_char(c)

    def ajax(self, start: int | None = None) -> str:
        """Return the JSON body listing log text from absolute offset *start*."""
        log_len = len(self._chars)
        offset = 0
        if start is not None:
            if start < self._position:
                offset = 0
            elif start >= self._position + log_len:
                offset = log_len
            else:
                offset = start - self._position
        body = '{"len":%d, "start":%d, "text": "' % (log_len - offset, self._position + offset)
        parts = [body]
        length = len(body)
        for index in range(offset, log_len):
            if length >= _AJAX_LIMIT:
                break
            c = self._chars[index]
            code = ord(c)
            if c in '\\"':
                piece = "\\" + c
            elif code < 0x20:
                piece = "\\u%04x" % code
            else:
                piece = c
            parts.append(piece)
            length += len(piece)
        parts.append('"}')
        return "".join(parts)


def dump_mem(data: bytes | bytearray | memoryview, address: int = 0) -> str:
    """Return a hex dump of *data*, 16 bytes per line, labelled from *address*."""
    raw = bytes(data)
    lines = []
    for off in range(0, len(raw), 16):
        row = raw[off:off + 16]
        hexpart = "".join(" %02x" % b for b in row)
        chars = "".join(chr(b) if 0x20 < b < 0x3F else "." for b in row)
        lines.append(f"{address + off:#010x} {hexpart} {chars}\n")
    return "".join(lines)