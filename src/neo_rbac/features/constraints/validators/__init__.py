"""Field validators."""

from .field_validator import FieldValidator, SAFE_TEXT_PATTERN

__all__ = ["FieldValidator", "SAFE_TEXT_PATTERN"]
