"""Diary sync with a WebDAV folder and optional end-to-end encryption."""

__version__ = "0.3.0"
