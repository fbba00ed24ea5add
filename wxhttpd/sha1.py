"""SHA-1 and HMAC-SHA1."""

from __future__ import annotations

import struct

__all__ = ["Sha1", "HmacSha1", "sha1", "hmac_sha1", "BLOCK_LENGTH", "HASH_LENGTH"]

BLOCK_LENGTH = 64
HASH_LENGTH = 20

_INITIAL = (0x67452301, 0xEFCDAB89, 0x98BADCFE, 0x10325476, 0xC3D2E1F0)
_K0 = 0x5A827999
_K20 = 0x6ED9EBA1
_K40 = 0x8F1BBCDC
_K60 = 0xCA62C1D6
_MASK = 0xFFFFFFFF
_IPAD = 0x36
_OPAD = 0x5C


def _rol(value: int, bits: int) -> int:
    return ((value << bits) | (value >> (32 - bits))) & _MASK


def _hash_block(state: list[int], block: bytes) -> None:
    w = list(struct.unpack(">16I", block))
    for i in range(16, 80):
        w.append(_rol(w[i - 3] ^ w[i - 8] ^ w[i - 14] ^ w[i - 16], 1))
    a, b, c, d, e = state
    for i, word in enumerate(w):
        if i < 20:
            t = (d ^ (b & (c ^ d))) + _K0
        elif i < 40:
            t = (b ^ c ^ d) + _K20
        elif i < 60:
            t = ((b & c) | (d & (b | c))) + _K40
        else:
            t = (b ^ c ^ d) + _K60
        t = (t + _rol(a, 5) + e + word) & _MASK
        a, b, c, d, e = t, a, _rol(b, 30), c, d
    for i, v in enumerate((a, b, c, d, e)):
        state[i] = (state[i] + v) & _MASK


class Sha1:
    """Incremental SHA-1 hash."""

    def __init__(self, data: bytes = b"") -> None:
        self._state = list(_INITIAL)
        self._buffer = bytearray()
        self._count = 0
        if data:
            self.update(data)

    def update(self, data: bytes | bytearray | memoryview) -> None:
        """Feed more bytes into the hash."""
        data = bytes(data)
        self._count += len(data)
        self._buffer.extend(data)
        full = len(self._buffer) - len(self._buffer) % BLOCK_LENGTH
        for start in range(0, full, BLOCK_LENGTH):
            _hash_block(self._state, bytes(self._buffer[start:start + BLOCK_LENGTH]))
        del self._buffer[:full]

    def digest(self) -> bytes:
        """Return the 20-byte digest of everything fed so far."""
        state = list(self._state)
        tail = bytearray(self._buffer)
        tail.append(0x80)
        tail.extend(b"\x00" * ((56 - len(tail)) % BLOCK_LENGTH))
        # Only a 32-bit byte count is kept.
        tail.extend(struct.pack(">Q", (self._count & _MASK) * 8))
        for start in range(0, len(tail), BLOCK_LENGTH):
            _hash_block(state, bytes(tail[start:start + BLOCK_LENGTH]))
        return struct.pack(">5I", *state)

    def hexdigest(self) -> str:
        return self.digest().hex()


class HmacSha1:
    """Incremental HMAC using SHA-1."""

    def __init__(self, key: bytes, data: bytes = b"") -> None:
        key = bytes(key)
        if len(key) > BLOCK_LENGTH:
            key = Sha1(key).digest()
        self._key = key.ljust(BLOCK_LENGTH, b"\x00")
        self._inner = Sha1(bytes(k ^ _IPAD for k in self._key))
        if data:
            self.update(data)

    def update(self, data: bytes | bytearray | memoryview) -> None:
        """Feed more message bytes."""
        self._inner.update(data)

    def digest(self) -> bytes:
        """Return the 20-byte MAC of everything fed so far."""
        outer = Sha1(bytes(k ^ _OPAD for k in self._key))
        outer.update(self._inner.digest())
        return outer.digest()

    def hexdigest(self) -> str:
        return self.digest().hex()


def sha1(data: bytes) -> bytes:
    """Return the SHA-1 digest of *data*."""
    return Sha1(data).digest()


def hmac_sha1(key: bytes, data: bytes) -> bytes:
    """Return the HMAC-SHA1 of *data* under *key*."""
    return HmacSha1(key, data).digest()