"""Top-level package for jarvis."""

__version__ = "0.4.0"
