"""API middleware components.

This module exports middleware for error handling and request correlation.
"""

from reasonrelay.api.middleware.correlation import CorrelationIdMiddleware
from reasonrelay.api.middleware.error_handler import setup_error_handlers

__all__ = ["CorrelationIdMiddleware", "setup_error_handlers"]
