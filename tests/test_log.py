import json

import pytest

from wxhttpd.log import BUF_MAX, LogBuffer, dump_mem


def make_log(size=BUF_MAX, now=5_000_000, uart=None):
    return LogBuffer(size=size, clock=lambda: now, uart=uart)


def test_first_line_has_no_timestamp():
    log = make_log()
    log.write("hello")
    assert log.text == "hello"


def test_newline_becomes_crlf_and_next_line_stamped():
    log = make_log()
    log.write("a\nb")
    assert log.text == "a\r\n  5000> b"


def test_timestamp_wraps_at_million_ms():
    log = make_log(now=1_000_000_000 + 42_000)
    log.write("\nx")
    assert log.text.endswith("> x")
    stamp = log.text.split("\r\n", 1)[1][:-1]
    assert stamp.strip().rstrip(">") == "42"


def test_overflow_drops_oldest():
    log = make_log(size=5)
    log.write("abcdefg")
    assert log.text == "defg"
    assert log.position == 3
    assert len(log) == 4


def test_uart_receives_output():
    seen = []
    log = make_log(uart=seen.append)
    log.write("x\n")
    assert "".join(seen) == "x\r\n"


def test_uart_disabled():
    seen = []
    log = make_log(uart=seen.append)
    log.uart_enabled = False
    log.write("abc")
    assert seen == []
    assert log.text == "abc"


def test_write_char_accepts_int():
    log = make_log()
    log.write_char(ord("Z"))
    assert log.text == "Z"


def test_ajax_empty():
    log = make_log()
    assert json.loads(log.ajax()) == {"len": 0, "start": 0, "text": ""}


def test_ajax_round_trip_with_escapes():
    log = make_log()
    log.write('a"b\\c\tline\nnext')
    parsed = json.loads(log.ajax())
    assert parsed["text"] == log.text
    assert parsed["len"] == len(log)
    assert parsed["start"] == 0


def test_ajax_escapes_quote_and_control():
    log = make_log()
    log.write('"\t')
    assert log.ajax().endswith('"text": "\\"\\u0009"}')


@pytest.mark.parametrize("start_shift", [0, 2, 3])
def test_ajax_start_within_buffer(start_shift):
    log = make_log(size=5)
    log.write("abcdefg")
    parsed = json.loads(log.ajax(log.position + start_shift))
    assert parsed["text"] == log.text[start_shift:]
    assert parsed["start"] == log.position + start_shift
    assert parsed["len"] == len(log) - start_shift


def test_ajax_start_before_and_after_buffer():
    log = make_log(size=5)
    log.write("abcdefg")
    before = json.loads(log.ajax(0))
    assert before["text"] == log.text
    after = json.loads(log.ajax(1000))
    assert after["text"] == ""
    assert after["start"] == log.position + len(log)


def test_ajax_output_is_limited():
    log = make_log(size=5000)
    log.write("x" * 3000)
    body = log.ajax()
    parsed = json.loads(body)
    assert len(body) <= 2040 + 2
    assert log.text.startswith(parsed["text"])
    assert len(parsed["text"]) < len(log)
    assert parsed["len"] == len(log)


def test_tiny_buffer_rejected():
    with pytest.raises(ValueError):
        LogBuffer(size=1)


def test_dump_mem_line_count_and_addresses():
    out = dump_mem(bytes(range(40)), 0x1000)
    lines = out.splitlines()
    assert len(lines) == 3
    assert lines[1].startswith(f"{0x1010:#010x}")
    assert lines[2].startswith(f"{0x1020:#010x}")


def test_dump_mem_printable_range():
    out = dump_mem(b"0A")
    assert out.endswith(" 30 41 0.\n")


def test_dump_mem_empty():
    assert dump_mem(b"") == ""