"""API dependency providers."""

from .gateway import get_user_gateway

__all__ = ["get_user_gateway"]
