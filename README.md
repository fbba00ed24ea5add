# wxhttpd

Building blocks for a small embedded web server, using only the standard
library:

- `wxhttpd.espfs`, `wxhttpd.espfsformat`, `wxhttpd.mkespfsimage` – a
  read-only, cpio-like file system image ("espfs"): build images, list and
  read the files in them
- `wxhttpd.roffsformat` – the header layout of the related "ROfs" image
- `wxhttpd.httputil` – MIME type lookup, URL decoding, GET/POST argument
  lookup and request-head parsing
- `wxhttpd.log` – a circular, timestamped character log with a JSON view
- `wxhttpd.config` – a settings record kept in two alternating flash
  sectors, each protected by a CRC-16
- `wxhttpd.status` – blink timing for a connection-status LED
- `wxhttpd.crc16`, `wxhttpd.base64codec`, `wxhttpd.sha1` – CRC-16 (CCITT),
  size-limited base-64, SHA-1 and HMAC-SHA1

## Installation

```
pip install wxhttpd
```

To run the tests:

```
pip install "wxhttpd[test]"
pytest
```

## Building an image

`mkespfsimage` reads file names, one per line, from standard input and
writes the image to standard output. A leading `.` and then a leading `/`
are stripped from each name; names that are not regular files are
skipped. For each file a line `name (ratio%, method)` goes to standard
error.

```
cd html
find . -type f | mkespfsimage > ../webpages.espfs
```

Options:

- `-c compressor` – `0` (the default) stores files uncompressed; any other
  value is rejected with "Unknown compression"
- `-l level` – gzip compression level, 1 to 9; a value outside that range
  prints the usage text
- `-g extensions` – comma-separated, case-sensitive list of extensions to
  store gzip-compressed (flagged as gzip in the header). Without `-g`
  nothing is gzipped.

A file that compression would make larger is stored as it is.

From Python:

```python
from wxhttpd.mkespfsimage import build_image

image = build_image(
    [("index.html", b"<h1>hi</h1>"), ("app.js", b"let x = 1;")],
    gzip_extensions=["js"],
)
```

`build_entry()` encodes a single file and returns an `Entry` with the
bytes, the size ratio and the storage method; `finish_archive()` returns
the end-of-image marker.

## Reading an image

```
espfs-extract webpages.espfs index.html
```

writes `index.html` from the image into the current directory.

```python
from wxhttpd.espfs import EspFs

fs = EspFs.from_path("webpages.espfs")
fs.names()                      # ["index.html", "app.js"]
with fs.open("/index.html") as f:   # leading slashes are ignored
    body = f.read()
    gzipped = f.is_gzip
```

`open()` raises `FileNotFoundError` for a missing name and `EspFsError`
for a broken image or a file stored with a compression other than none.

## Other helpers

```python
from wxhttpd.crc16 import crc16_data
from wxhttpd.sha1 import sha1, hmac_sha1
from wxhttpd.httputil import get_mimetype, find_arg, RequestHead

crc16_data(b"123456789")
sha1(b"abc")                               # 20-byte digest
hmac_sha1(b"secret", b"message")           # 20-byte MAC

get_mimetype("/index.html")                # "text/html"
find_arg("start=10&name=a+b", "name", 64)  # "a b"

head = RequestHead.parse(b"GET /x?a=1 HTTP/1.1\r\nHost: dev\r\n\r\n")
head.url, head.args, head.header("Host")   # ("/x", "a=1", "dev")
```

- `LogBuffer` keeps the last 1399 characters written with `write()` or
  `write_char()`, stamps each new line with the time in milliseconds,
  and `ajax(start)` returns the JSON body `{"len", "start", "text"}`.
  `dump_mem()` returns a hex dump.
- `ConfigStore` saves and restores a `FlashConfig` through any object with
  `read`, `write` and `erase_sector` (`MemoryFlash` is an in-memory one).
  `save()` raises `ConfigError` when the new copy cannot be written;
  `restore()` returns `False` and falls back to defaults when neither
  sector holds a valid record.
- `led_step()` and `StatusLed` give the LED level and the delay to the
  next step for each wifi mode and state.

## What this package does not do

It has no HTTP server: there is no connection handler, URL routing,
response writing, Basic authentication, serving of image files over HTTP
or socket loop. `wxhttpd.httputil` only parses requests. Images can be
built and read only with files stored uncompressed or gzipped; no other
compression is supported.