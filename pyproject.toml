[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "wxhttpd"
version = "0.1.0"
description = "Building blocks for a small embedded web server: espfs file system images, HTTP request helpers, a ring-buffer log, a CRC-protected settings store and small codecs"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "http",
    "espfs",
    "filesystem image",
    "url decoding",
    "crc16",
    "base64",
    "sha1",
    "hmac",
    "embedded",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
    "Topic :: Software Development :: Embedded Systems",
    "Topic :: System :: Filesystems",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
mkespfsimage = "wxhttpd.mkespfsimage:main"
espfs-extract = "wxhttpd.espfs:main"

[tool.hatch.build.targets.wheel]
packages = ["wxhttpd"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
