"""Build espfs images from a list of files."""

from __future__ import annotations

import os
import stat
import sys
import zlib
from typing import Iterable, NamedTuple, Sequence

from .espfsformat import COMPRESS_NONE, FLAG_GZIP, FLAG_LASTFILE, EspFsHeader

__all__ = [
    "Entry",
    "compress_gzip",
    "parse_gzip_extensions",
    "should_gzip",
    "build_entry",
    "finish_archive",
    "build_image",
    "main",
]


class Entry(NamedTuple):
    """One encoded file: its image bytes, size ratio in percent and storage method."""

    blob: bytes
    ratio: int
    method: str


def _pad4(data: bytes) -> bytes:
    return data + b"\0" * (-len(data) % 4)


def compress_gzip(data: bytes, level: int = -1) -> bytes:
    """Compress *data* into a gzip stream (15-bit window, memory level 8)."""
    compressor = zlib.compressobj(level, zlib.DEFLATED, 31, 8, zlib.Z_DEFAULT_STRATEGY)
    return compressor.compress(bytes(data)) + compressor.flush(zlib.Z_FINISH)


def parse_gzip_extensions(text: str) -> list[str]:
    """Split a comma-separated extension list, dropping empty items."""
    return [item for item in text.split(",") if item]


def should_gzip(name: str, extensions: Sequence[str]) -> bool:
    """Tell whether *name*'s extension (case sensitive) is one of *extensions*."""
    if "." not in name:
        return False
    return name.rpartition(".")[2] in extensions


def build_entry(
    name: str,
    data: bytes,
    compression: int = COMPRESS_NONE,
    level: int = -1,
    gzip_extensions: Sequence[str] | None = None,
) -> Entry:
    """Encode one file as header, padded name and padded contents."""
    data = bytes(data)
    flags = 0
    if gzip_extensions and should_gzip(name, gzip_extensions):
        packed = compress_gzip(data, level)
        compression = COMPRESS_NONE
        flags = FLAG_GZIP
    elif compression == COMPRESS_NONE:
        packed = data
    else:
        raise ValueError(f"Unknown compression - {compression}")

    if len(packed) > len(data):
        # Compression made the file larger; store it as it is.
        packed = data
        compression = COMPRESS_NONE
        flags = 0

    raw_name = _pad4(name.encode("utf-8") + b"\0")
    header = EspFsHeader(flags, compression, len(raw_name), len(packed), len(data))
    body = _pad4(packed)
    ratio = len(body) * 100 // len(data) if data else 100
    method = "gzip" if flags & FLAG_GZIP else "none"
    return Entry(header.pack() + raw_name + body, ratio, method)


def finish_archive() -> bytes:
    """Return the data-less header that marks the end of an image."""
    return EspFsHeader(FLAG_LASTFILE, COMPRESS_NONE, 0, 0, 0).pack()


def build_image(
    files: Iterable[tuple[str, bytes]],
    compression: int = COMPRESS_NONE,
    level: int = -1,
    gzip_extensions: Sequence[str] | None = None,
) -> bytes:
    """Build a complete image from (name, contents) pairs."""
    parts = [
        build_entry(name, data, compression, level, gzip_extensions).blob
        for name, data in files
    ]
    parts.append(finish_archive())
    return b"".join(parts)


def _atoi(text: str) -> int:
    text = text.strip()
    digits = ""
    for i, ch in enumerate(text):
        if ch.isdigit() or (i == 0 and ch in "+-"):
            digits += ch
        else:
            break
    try:
        return int(digits)
    except ValueError:
        return 0


def _usage(prog: str) -> None:
    err = sys.stderr
    print(f"{prog} - Program to create espfs images", file=err)
    print(
        f"Usage: \nfind | {prog} [-c compressor] [-l compression_level] "
        "[-g gzipped_extensions] > out.espfs",
        file=err,
    )
    print("Compressors:\n0 - None(default)", file=err)
    print(
        "\nCompression level: 1 is worst but low RAM usage, higher is better compression "
        "\nbut uses more ram on decompression. -1 = compressors default.",
        file=err,
    )
    print(
        "\nGzipped extensions: list of comma separated, case sensitive file extensions "
        "\nthat will be gzipped.",
        file=err,
    )


def main(argv: list[str] | None = None) -> int:
    """Read file names from stdin and write an image to stdout."""
    args = sys.argv[1:] if argv is None else list(argv)
    prog = os.path.basename(sys.argv[0]) if sys.argv and sys.argv[0] else "mkespfsimage"
    compression = COMPRESS_NONE
    level = -1
    gzip_extensions: list[str] | None = None
    bad = False

    i = 0
    while i < len(args):
        option = args[i]
        if option in ("-c", "-l", "-g") and i + 1 < len(args):
            value = args[i + 1]
            i += 2
            if option == "-c":
                compression = _atoi(value)
            elif option == "-l":
                level = _atoi(value)
                if not 1 <= level <= 9:
                    bad = True
            else:
                gzip_extensions = parse_gzip_extensions(value)
        else:
            bad = True
            i += 1

    if bad:
        _usage(prog)
        return 0

    out = sys.stdout.buffer
    for line in sys.stdin:
        file_name = line[:-1] if line.endswith("\n") else line
        try:
            info = os.stat(file_name)
        except OSError as exc:
            print(f"{file_name}: {exc.strerror or exc}", file=sys.stderr)
            continue
        if not stat.S_ISREG(info.st_mode):
            continue
        real_name = file_name
        if real_name.startswith("."):
            real_name = real_name[1:]
        if real_name.startswith("/"):
            real_name = real_name[1:]
        try:
            with open(file_name, "rb") as handle:
                contents = handle.read()
        except OSError as exc:
            print(f"{file_name}: {exc.strerror or exc}", file=sys.stderr)
            continue
        try:
            entry = build_entry(real_name, contents, compression, level, gzip_extensions)
        except ValueError as exc:
            print(str(exc), file=sys.stderr)
            return 1
        out.write(entry.blob)
        print(f"{real_name} ({entry.ratio}%, {entry.method})", file=sys.stderr)

    out.write(finish_archive())
    out.flush()
    return 0