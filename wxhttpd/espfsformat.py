"""On-flash layout of an espfs image: headers, names and file data, 4-byte aligned."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import ClassVar

__all__ = [
    "FLAG_LASTFILE",
    "FLAG_GZIP",
    "COMPRESS_NONE",
    "COMPRESS_HEATSHRINK",
    "ESPFS_MAGIC",
    "EspFsHeader",
]

FLAG_LASTFILE = 1 << 0
FLAG_GZIP = 1 << 1
COMPRESS_NONE = 0
COMPRESS_HEATSHRINK = 1
ESPFS_MAGIC = 0x73665345

_STRUCT = struct.Struct("<ibbhii")


@dataclass
class EspFsHeader:
    """Header preceding each file (and the final end marker) in an image."""

    flags: int = 0
    compression: int = COMPRESS_NONE
    name_len: int = 0
    file_len_comp: int = 0
    file_len_decomp: int = 0
    magic: int = ESPFS_MAGIC

    SIZE: ClassVar[int] = _STRUCT.size

    @property
    def is_last(self) -> bool:
        return bool(self.flags & FLAG_LASTFILE)

    @property
    def is_gzip(self) -> bool:
        return bool(self.flags & FLAG_GZIP)

    @property
    def valid(self) -> bool:
        return self.magic == ESPFS_MAGIC

    def pack(self) -> bytes:
        """Return the 16 little-endian bytes of this header."""
        return _STRUCT.pack(
            self.magic,
            self.flags,
            self.compression,
            self.name_len,
            self.file_len_comp,
            self.file_len_decomp,
        )

    @classmethod
    def unpack(cls, data: bytes) -> "EspFsHeader":
        """Read a header from the start of *data*."""
        if len(data) < _STRUCT.size:
            raise ValueError(f"need {_STRUCT.size} bytes for a header, got {len(data)}")
        magic, flags, compression, name_len, comp, decomp = _STRUCT.unpack_from(data)
        return cls(flags, compression, name_len, comp, decomp, magic)