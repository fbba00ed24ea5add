"""Header layout of the read-only "ROfs" flash file system."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import ClassVar

__all__ = [
    "FLAG_LASTFILE",
    "FLAG_GZIP",
    "FLAG_ACTIVE",
    "FLAG_PENDING",
    "COMPRESS_NONE",
    "ROFS_MAGIC",
    "RoFsHeader",
]

FLAG_LASTFILE = 1 << 0
FLAG_GZIP = 1 << 1
FLAG_ACTIVE = 1 << 2
FLAG_PENDING = 1 << 3
COMPRESS_NONE = 0
ROFS_MAGIC = ord("R") | (ord("O") << 8) | (ord("f") << 16) | (ord("s") << 24)

_STRUCT = struct.Struct("<ibbhii")


@dataclass
class RoFsHeader:
    """Header preceding each file in a ROfs image."""

    flags: int = 0
    compression: int = COMPRESS_NONE
    name_len: int = 0
    file_len_comp: int = 0
    file_len_decomp: int = 0
    magic: int = ROFS_MAGIC

    SIZE: ClassVar[int] = _STRUCT.size

    @property
    def is_last(self) -> bool:
        return bool(self.flags & FLAG_LASTFILE)

    @property
    def is_active(self) -> bool:
        return bool(self.flags & FLAG_ACTIVE)

    @property
    def is_pending(self) -> bool:
        return bool(self.flags & FLAG_PENDING)

    @property
    def valid(self) -> bool:
        return self.magic == ROFS_MAGIC

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
    def unpack(cls, data: bytes) -> "RoFsHeader":
        """Read a header from the start of *data*."""
        if len(data) < _STRUCT.size:
            raise ValueError(f"need {_STRUCT.size} bytes for a header, got {len(data)}")
        magic, flags, compression, name_len, comp, decomp = _STRUCT.unpack_from(data)
        return cls(flags, compression, name_len, comp, decomp, magic)