"""Base-64 (MIME) encoding and lenient decoding with output size limits."""

from __future__ import annotations

__all__ = ["decode", "encode"]

_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/"
_DECODE = {ch: i for i, ch in enumerate(_ALPHABET)}
_SPACE = " \t\n\v\f\r"


def decode(text: str | bytes, max_length: int | None = None) -> bytes:
    """Decode base-64 *text*.

    Whitespace is skipped; decoding stops at the first ``=`` or at the first
    character outside the alphabet. Raises ValueError when the result would
    be longer than *max_length*.
    """
    if isinstance(text, (bytes, bytearray, memoryview)):
        text = bytes(text).decode("latin-1")
    out = bytearray()
    value = 0
    rem = 0
    for ch in text:
        if ch in _SPACE:
            continue
        if ch == "=":
            break
        sextet = _DECODE.get(ch)
        if sextet is None:
            break
        value = ((value << 6) | sextet) & 0xFFFF
        rem += 6
        if rem >= 8:
            rem -= 8
            if max_length is not None and len(out) >= max_length:
                raise ValueError("decoded data does not fit in the output limit")
            out.append((value >> rem) & 0xFF)
    return bytes(out)


def encode(data: bytes | bytearray | memoryview, max_length: int | None = None) -> str:
    """Encode *data* as padded base-64.

    *max_length* counts a terminating NUL as the original buffer did, so the
    returned text must be strictly shorter than it; otherwise ValueError.
    """
    out: list[str] = []
    value = 0
    rem = 0
    for byte in bytes(data):
        value = ((value << 8) | byte) & 0xFFFF
        rem += 8
        while rem >= 6:
            rem -= 6
            out.append(_ALPHABET[(value >> rem) & 63])
    if rem:
        value <<= 6 - rem
        out.append(_ALPHABET[value & 63])
    while len(out) % 4:
        out.append("=")
    if max_length is not None and len(out) >= max_length:
        raise ValueError("encoded data does not fit in the output limit")
    return "".join(out)