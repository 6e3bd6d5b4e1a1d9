"""Reasoning relay API module.

This module provides the FastAPI application, the WebSocket relay and the
HTTP route handlers.
"""

from reasonrelay.api.app import app, create_app

__all__ = ["app", "create_app"]
