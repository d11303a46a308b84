"""Constraint entities."""

from .constraint import Constraint

__all__ = ["Constraint"]
