"""Constraint services."""

from .constraint_codec import ConstraintCodec, FIELD_ORDER, default_codec

__all__ = ["ConstraintCodec", "FIELD_ORDER", "default_codec"]
