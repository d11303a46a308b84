"""Constraints feature module."""

from .entities import Constraint
from .validators import FieldValidator
from .services import ConstraintCodec

__all__ = ["Constraint", "FieldValidator", "ConstraintCodec"]
