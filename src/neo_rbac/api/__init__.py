"""FastAPI surface for the user directory."""

from .dependencies import get_user_gateway
from .exception_handlers import register_exception_handlers
from .routers import user_router

__all__ = [
    "get_user_gateway",
    "register_exception_handlers",
    "user_router",
]
