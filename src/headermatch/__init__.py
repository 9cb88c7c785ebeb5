"""HeaderMatch - AI-assisted column header matching."""

__version__ = "0.1.0"
