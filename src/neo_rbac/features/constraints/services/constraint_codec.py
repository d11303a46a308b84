"""Constraint codec.

Maps a Constraint to and from the single delimited value stored in the
directory. The stored form is positional::

    name$timeout$beginTime$endTime$beginDate$endDate$beginLockDate$endLockDate$dayMask

Absent fields keep their slot as an empty string; decoding relies on the
field index, never on key/value pairs.
"""

import logging
from typing import List, Optional, Tuple

from ....config.constants import Delimiters
from ....core.exceptions import ValidationError, ValidationErrorKind
from ..entities.constraint import Constraint
from ..validators.field_validator import FieldValidator

logger = logging.getLogger(__name__)

FIELD_ORDER: Tuple[str, ...] = (
    "name",
    "timeout",
    "begin_time",
    "end_time",
    "begin_date",
    "end_date",
    "begin_lock_date",
    "end_lock_date",
    "day_mask",
)


class ConstraintCodec:
    """Encode and decode constraint attribute values.

    When ``strict`` is set, decoded values are passed through the field
    validator and any failure is reported as a malformed constraint.
    """

    FIELD_COUNT = len(FIELD_ORDER)

    def __init__(
        self,
        delimiter: str = Delimiters.RECORD,
        validator: Optional[FieldValidator] = None,
        strict: bool = False
    ):
        self.delimiter = delimiter
        self.validator = validator or FieldValidator()
        self.strict = strict

    def encode_fields(self, constraint: Constraint) -> List[str]:
        """Positional field values for a constraint; absent fields are empty."""
        values = []
        for name in FIELD_ORDER:
            value = getattr(constraint, name)
            text = "" if value is None else str(value)
            if self.delimiter in text:
                raise ValidationError(
                    ValidationErrorKind.MALFORMED_CONSTRAINT,
                    f"constraint field {name} value [{text}] contains the delimiter",
                    field=name
                )
            values.append(text)
        return values

    def encode(self, constraint: Constraint) -> str:
        """Encode a constraint; returns an empty string if nothing is set."""
        if constraint is None or constraint.is_empty():
            return ""
        return self.delimiter.join(self.encode_fields(constraint))

    def split(self, raw: str) -> List[str]:
        if not isinstance(raw, str):
            raise ValidationError(
                ValidationErrorKind.MALFORMED_CONSTRAINT,
                f"constraint value is not delimited text: {raw!r}"
            )
        if raw == "":
            return []
        return raw.split(self.delimiter)

    def decode_fields(self, raw: str) -> Tuple[Constraint, List[str]]:
        """Decode the leading constraint fields, returning any trailing extras.

        Missing trailing fields decode as absent.
        """
        parts = self.split(raw)
        constraint = Constraint()

        for index, name in enumerate(FIELD_ORDER):
            if index >= len(parts) or parts[index] == "":
                continue
            value = parts[index]
            if name == "timeout":
                try:
                    setattr(constraint, name, int(value))
                except ValueError:
                    raise ValidationError(
                        ValidationErrorKind.MALFORMED_CONSTRAINT,
                        f"constraint timeout [{value}] is not an integer",
                        field=name
                    )
            else:
                setattr(constraint, name, value)

        if self.strict:
            try:
                self.validator.constraint(constraint)
            except ValidationError as e:
                logger.warning(f"Stored constraint [{raw}] failed validation: {e.message}")
                raise ValidationError(
                    ValidationErrorKind.MALFORMED_CONSTRAINT,
                    f"stored constraint [{raw}] is invalid: {e.message}",
                    field=e.field
                )

        return constraint, parts[self.FIELD_COUNT:]

    def decode(self, raw: str) -> Constraint:
        """Decode a constraint value; an empty string yields an all-absent constraint."""
        constraint, extras = self.decode_fields(raw)
        if extras:
            raise ValidationError(
                ValidationErrorKind.MALFORMED_CONSTRAINT,
                f"constraint value [{raw}] has {len(extras)} unexpected trailing fields"
            )
        return constraint


default_codec = ConstraintCodec()
