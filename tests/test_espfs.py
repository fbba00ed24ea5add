import pytest

from wxhttpd.espfs import EspFs, EspFsError, main
from wxhttpd.espfsformat import (
    COMPRESS_HEATSHRINK,
    COMPRESS_NONE,
    FLAG_GZIP,
    FLAG_LASTFILE,
    EspFsHeader,
)


def _pad(data: bytes) -> bytes:
    return data + b"\0" * (-len(data) % 4)


def _entry(name: str, data: bytes, flags: int = 0, compression: int = COMPRESS_NONE) -> bytes:
    raw_name = _pad(name.encode() + b"\0")
    header = EspFsHeader(flags, compression, len(raw_name), len(data), len(data))
    return header.pack() + raw_name + _pad(data)


def _end() -> bytes:
    return EspFsHeader(FLAG_LASTFILE, COMPRESS_NONE, 0, 0, 0).pack()


def _image() -> bytes:
    return (
        _entry("index.html", b"<html>hello</html>")
        + _entry("css/style.css", b"body{}", flags=FLAG_GZIP)
        + _entry("empty", b"")
        + _end()
    )


def test_open_and_read_whole_file():
    fs = EspFs(_image())
    with fs.open("index.html") as f:
        assert f.read() == b"<html>hello</html>"


def test_leading_slashes_are_stripped():
    fs = EspFs(_image())
    assert fs.open("//css/style.css").read() == b"body{}"


def test_read_in_chunks_reassembles():
    fs = EspFs(_image())
    f = fs.open("index.html")
    parts = []
    while chunk := f.read(4):
        assert len(chunk) <= 4
        parts.append(chunk)
    assert b"".join(parts) == b"<html>hello</html>"
    assert f.read(4) == b""


def test_flags_reported():
    fs = EspFs(_image())
    assert fs.open("css/style.css").is_gzip is True
    assert fs.open("index.html").flags == 0


def test_empty_file_reads_nothing():
    fs = EspFs(_image())
    assert fs.open("empty").read(10) == b""


def test_names_in_order():
    assert EspFs(_image()).names() == ["index.html", "css/style.css", "empty"]


def test_missing_file_raises():
    with pytest.raises(FileNotFoundError):
        EspFs(_image()).open("nope.txt")


def test_read_after_close_raises():
    f = EspFs(_image()).open("index.html")
    f.close()
    assert f.closed is True
    with pytest.raises(ValueError):
        f.read()


def test_bad_magic_rejected():
    with pytest.raises(EspFsError):
        EspFs(b"\0" * 32)


def test_broken_image_detected_while_searching():
    data = _entry("a", b"1234") + b"XXXX" + b"\0" * 12
    fs = EspFs(data)
    assert fs.open("a").read() == b"1234"
    with pytest.raises(EspFsError):
        fs.open("b")


def test_heatshrink_entry_is_unsupported():
    data = _entry("packed", b"\x84abc", compression=COMPRESS_HEATSHRINK) + _end()
    with pytest.raises(EspFsError):
        EspFs(data).open("packed")


def test_main_extracts_file(tmp_path, monkeypatch):
    image = tmp_path / "img.espfs"
    image.write_bytes(_image())
    monkeypatch.chdir(tmp_path)
    assert main([str(image), "index.html"]) == 0
    assert (tmp_path / "index.html").read_bytes() == b"<html>hello</html>"


def test_main_usage_with_wrong_arguments(capsys):
    assert main(["only-one"]) == 0
    assert "Usage:" in capsys.readouterr().out


def test_main_missing_file_in_image(tmp_path, monkeypatch, capsys):
    image = tmp_path / "img.espfs"
    image.write_bytes(_image())
    monkeypatch.chdir(tmp_path)
    assert main([str(image), "absent"]) == 1
    assert "Couldn't find absent" in capsys.readouterr().out


def test_main_rejects_non_image(tmp_path):
    image = tmp_path / "junk.bin"
    image.write_bytes(b"\0" * 64)
    assert main([str(image), "x"]) == 1