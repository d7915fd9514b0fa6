"""
FastAPI server module for Nova.

Exposes the chat turn endpoint, tool listing and health checks.
"""

from .main import app, create_app

__all__ = ["app", "create_app"]
