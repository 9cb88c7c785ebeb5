"""HTTP API for HeaderMatch."""

from .app import create_app, get_service

__all__ = ["create_app", "get_service"]
