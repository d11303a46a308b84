"""Utilities for neo-rbac."""

from .ids import generate_internal_id, is_internal_id

__all__ = ["generate_internal_id", "is_internal_id"]
