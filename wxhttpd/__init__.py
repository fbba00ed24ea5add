"""Embedded web server building blocks: espfs images, HTTP request helpers, logging, settings storage and codecs."""

__version__ = "0.1.0"