"""Read-only access to files stored in an espfs image."""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Iterator

from .espfsformat import COMPRESS_NONE, FLAG_GZIP, EspFsHeader

__all__ = ["EspFsError", "EspFs", "EspFsFile", "main"]

_NAME_WINDOW = 256
_CHUNK = 128


class EspFsError(Exception):
    """Raised when an image is missing, broken or uses an unsupported feature."""


class EspFsFile:
    """A file opened from an espfs image, read sequentially."""

    def __init__(self, name: str, header: EspFsHeader, payload: bytes) -> None:
        self.name = name
        self.header = header
        self._payload = payload
        self._pos = 0
        self._closed = False

    @property
    def flags(self) -> int:
        return self.header.flags

    @property
    def is_gzip(self) -> bool:
        return bool(self.header.flags & FLAG_GZIP)

    @property
    def closed(self) -> bool:
        return self._closed

    def read(self, size: int = -1) -> bytes:
        """Return up to *size* bytes (all remaining bytes if *size* is negative)."""
        if self._closed:
            raise ValueError("I/O operation on closed file")
        remaining = len(self._payload) - self._pos
        if size < 0 or size > remaining:
            size = remaining
        chunk = self._payload[self._pos:self._pos + size]
        self._pos += len(chunk)
        return chunk

    def close(self) -> None:
        """Release the file."""
        self._closed = True

    def __enter__(self) -> "EspFsFile":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


class EspFs:
    """An espfs image held in memory."""

    def __init__(self, data: bytes | bytearray | memoryview) -> None:
        self._data = bytes(data)
        if len(self._data) < EspFsHeader.SIZE or not EspFsHeader.unpack(self._data).valid:
            raise EspFsError("no espfs image found")

    @classmethod
    def from_path(cls, path: str | os.PathLike[str]) -> "EspFs":
        """Load an image from a file."""
        return cls(Path(path).read_bytes())

    def _header_at(self, pos: int) -> EspFsHeader:
        if pos < 0 or pos + EspFsHeader.SIZE > len(self._data):
            raise EspFsError("magic mismatch, espfs image broken")
        header = EspFsHeader.unpack(self._data[pos:])
        if not header.valid:
            raise EspFsError("magic mismatch, espfs image broken")
        return header

    def _entries(self) -> Iterator[tuple[bytes, EspFsHeader, int]]:
        pos = 0
        while True:
            header = self._header_at(pos)
            if header.is_last:
                return
            name_pos = pos + EspFsHeader.SIZE
            name = self._data[name_pos:name_pos + _NAME_WINDOW].split(b"\0", 1)[0]
            content = name_pos + header.name_len
            yield name, header, content
            nxt = content + header.file_len_comp
            nxt += -nxt % 4
            if nxt <= pos:
                raise EspFsError("espfs image broken: entry lengths are invalid")
            pos = nxt

    def names(self) -> list[str]:
        """Return the names of all files in the image, in stored order."""
        return [name.decode("utf-8", "replace") for name, _, _ in self._entries()]

    def open(self, name: str | bytes) -> EspFsFile:
        """Open the file called *name*; leading slashes are ignored."""
        wanted = name.encode("utf-8") if isinstance(name, str) else bytes(name)
        wanted = wanted.lstrip(b"/")
        for stored, header, content in self._entries():
            if stored != wanted:
                continue
            if header.compression != COMPRESS_NONE:
                raise EspFsError(f"invalid compression: {header.compression}")
            payload = self._data[content:content + header.file_len_comp]
            return EspFsFile(stored.decode("utf-8", "replace"), header, payload)
        raise FileNotFoundError(f"{wanted.decode('utf-8', 'replace')} not found in image")


def main(argv: list[str] | None = None) -> int:
    """Expand one file from an espfs image into the current directory."""
    args = sys.argv[1:] if argv is None else list(argv)
    prog = os.path.basename(sys.argv[0]) if sys.argv and sys.argv[0] else "espfstest"
    if len(args) != 2:
        print(f"Usage: {prog} espfs-image file\nExpands file from the espfs-image archive.")
        return 0
    image_path, name = args
    try:
        fs = EspFs.from_path(image_path)
    except EspFsError as exc:
        print(f"Couldn't init espfs filesystem ({exc})")
        return 1
    except OSError as exc:
        print(f"{image_path}: {exc.strerror or exc}", file=sys.stderr)
        return 1
    try:
        handle = fs.open(name)
    except (FileNotFoundError, EspFsError):
        print(f"Couldn't find {name} in image.")
        return 1
    try:
        with handle, open(name, "wb") as out:
            while chunk := handle.read(_CHUNK):
                out.write(chunk)
    except OSError as exc:
        print(f"{name}: {exc.strerror or exc}", file=sys.stderr)
        return 1
    return 0