"""CRC-16 (CCITT polynomial x^16 + x^12 + x^5 + 1, reflected) checksum."""

from __future__ import annotations

__all__ = ["crc16_add", "crc16_data"]


def crc16_add(b: int, acc: int) -> int:
    """Update the accumulated checksum *acc* with the byte *b*."""
    acc = (acc ^ (b & 0xFF)) & 0xFFFF
    acc = ((acc >> 8) | (acc << 8)) & 0xFFFF
    acc ^= ((acc & 0xFF00) << 4) & 0xFFFF
    acc ^= (acc >> 8) >> 4
    acc ^= (acc & 0xFF00) >> 5
    return acc & 0xFFFF


def crc16_data(data: bytes | bytearray | memoryview, acc: int = 0) -> int:
    """Return the checksum of *data*, continuing from *acc*."""
    acc &= 0xFFFF
    for byte in bytes(data):
        acc = crc16_add(byte, acc)
    return acc