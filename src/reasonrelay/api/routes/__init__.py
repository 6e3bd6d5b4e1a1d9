"""API route handlers for the reasoning relay."""

from reasonrelay.api.routes.chat import router as chat_router
from reasonrelay.api.routes.health import router as health_router
from reasonrelay.api.routes.home import router as home_router
from reasonrelay.api.routes.params import router as params_router
from reasonrelay.api.routes.ws import router as ws_router

__all__ = [
    "chat_router",
    "health_router",
    "home_router",
    "params_router",
    "ws_router",
]
