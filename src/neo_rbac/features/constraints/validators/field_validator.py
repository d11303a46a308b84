"""Field validator.

Stateless syntactic checks over raw field values. Every check either
returns silently or raises ValidationError with the precise kind; none of
them touch the directory.
"""

import logging
import re
from datetime import datetime
from typing import Any, Mapping, Optional, Union

from ....config.constants import Delimiters, FieldLimits, Sentinels
from ....core.exceptions import ValidationError, ValidationErrorKind
from ..entities.constraint import Constraint

logger = logging.getLogger(__name__)

# Letters, digits and a small punctuation set; filter metacharacters ( ) * \ & | ! < >
# and the record delimiter $ are excluded
SAFE_TEXT_PATTERN = re.compile(r"^[\w .,'@+:=/#~\[\]{}%?^-]+$")

_TIME_PATTERN = re.compile(r"^([01][0-9]|2[0-3])[0-5][0-9]$")
_DIGITS_PATTERN = re.compile(r"^[0-9]+$")

_FILTER_ESCAPES = {
    "\\": r"\5c",
    "*": r"\2a",
    "(": r"\28",
    ")": r"\29",
    "\x00": r"\00",
}


def _is_empty(value: Any) -> bool:
    return value is None or len(value) == 0


def _is_sentinel(value: str, sentinel: str) -> bool:
    return value.lower() == sentinel


class FieldValidator:
    """Validation rules parameterized by the configured field length."""

    def __init__(self, field_length: int = FieldLimits.DEFAULT_FIELD_LEN):
        self.field_length = field_length

    def user_id(self, value: Optional[str]) -> None:
        if _is_empty(value):
            raise ValidationError(ValidationErrorKind.EMPTY, "userId is null or empty", field="user_id")
        if len(value) > FieldLimits.USER_ID_LEN:
            raise ValidationError(
                ValidationErrorKind.TOO_LONG,
                f"userId value [{value}] invalid length [{len(value)}]",
                field="user_id"
            )

    def org_unit(self, value: Optional[str]) -> None:
        if _is_empty(value):
            raise ValidationError(ValidationErrorKind.EMPTY, "orgUnit is null or empty", field="ou")
        if len(value) > self.field_length:
            raise ValidationError(
                ValidationErrorKind.TOO_LONG,
                f"orgUnit value [{value}] invalid length [{len(value)}]",
                field="ou"
            )

    def password(self, value: Union[str, bytes]) -> None:
        """Length check only; strength is left to the password policy."""
        if len(value) > FieldLimits.PASSWORD_LEN:
            raise ValidationError(
                ValidationErrorKind.TOO_LONG,
                f"password invalid length [{len(value)}]",
                field="password"
            )

    def description(self, value: str) -> None:
        if len(value) > FieldLimits.DESCRIPTION_LEN:
            raise ValidationError(
                ValidationErrorKind.TOO_LONG,
                f"description value invalid length [{len(value)}]",
                field="description"
            )
        self.safe_text(value, FieldLimits.DESCRIPTION_LEN)

    def safe_text(self, value: Optional[str], max_len: Optional[int] = None) -> None:
        """Reject empty, over-long, or filter-unsafe text."""
        max_len = self.field_length if max_len is None else max_len
        if _is_empty(value):
            raise ValidationError(ValidationErrorKind.EMPTY, "safeText null or empty value")
        if len(value) > max_len:
            raise ValidationError(
                ValidationErrorKind.TOO_LONG,
                f"safeText value [{value}] invalid length [{len(value)}]"
            )
        if not SAFE_TEXT_PATTERN.fullmatch(value):
            raise ValidationError(
                ValidationErrorKind.UNSAFE_CHARS,
                f"safeText value [{value}] contains unsafe characters"
            )

    def properties(self, props: Optional[Mapping[str, Any]]) -> None:
        if not props:
            return
        for key, value in props.items():
            self.safe_text(key, FieldLimits.PROPERTY_LEN)
            self.no_pair_delimiter(key, "property key")
            self.safe_text(str(value), FieldLimits.PROPERTY_LEN)

    @staticmethod
    def no_pair_delimiter(value: str, field: str) -> None:
        """Reject a value holding the ``name:value`` separator."""
        if Delimiters.PROPERTY in value:
            raise ValidationError(
                ValidationErrorKind.UNSAFE_CHARS,
                f"{field} [{value}] must not contain [{Delimiters.PROPERTY}]",
                field=field
            )

    def encode_safe_text(self, value: Optional[str], max_len: Optional[int] = None) -> str:
        """Validate a value and escape it for use inside a search filter."""
        self.safe_text(value, max_len)
        return "".join(_FILTER_ESCAPES.get(ch, ch) for ch in value)

    @staticmethod
    def timeout(value: Optional[int]) -> None:
        if not isinstance(value, int) or isinstance(value, bool) or not 0 <= value < FieldLimits.MAX_TIMEOUT:
            raise ValidationError(
                ValidationErrorKind.OUT_OF_RANGE,
                f"timeout - invalid timeout value [{value}]",
                field="timeout"
            )

    @staticmethod
    def _time(value: Optional[str], field: str) -> None:
        if value is None or len(value) != FieldLimits.TIME_LEN:
            raise ValidationError(
                ValidationErrorKind.WRONG_LENGTH,
                f"{field} - null or invalid length (must be {FieldLimits.TIME_LEN}) for value [{value}]",
                field=field
            )
        if not _TIME_PATTERN.fullmatch(value):
            logger.warning(f"{field} [{value}] failed 24-hour HHmm validation")
            raise ValidationError(
                ValidationErrorKind.BAD_FORMAT,
                f"{field} - invalid value [{value}]",
                field=field
            )

    @staticmethod
    def _date(value: Optional[str], field: str) -> None:
        if _is_empty(value):
            raise ValidationError(ValidationErrorKind.EMPTY, f"{field} - null or empty value", field=field)
        if _is_sentinel(value, Sentinels.NONE):
            return
        if len(value) != FieldLimits.DATE_LEN:
            raise ValidationError(
                ValidationErrorKind.WRONG_LENGTH,
                f"{field} - invalid length (must be {FieldLimits.DATE_LEN}) for value [{value}]",
                field=field
            )
        try:
            if not _DIGITS_PATTERN.fullmatch(value):
                raise ValueError(value)
            datetime.strptime(value, "%Y%m%d")
        except ValueError:
            logger.warning(f"{field} [{value}] failed yyyyMMdd validation")
            raise ValidationError(
                ValidationErrorKind.BAD_FORMAT,
                f"{field} - invalid value [{value}]",
                field=field
            )

    @classmethod
    def begin_time(cls, value: Optional[str]) -> None:
        cls._time(value, "begin_time")

    @classmethod
    def end_time(cls, value: Optional[str]) -> None:
        cls._time(value, "end_time")

    @classmethod
    def begin_date(cls, value: Optional[str]) -> None:
        cls._date(value, "begin_date")

    @classmethod
    def end_date(cls, value: Optional[str]) -> None:
        cls._date(value, "end_date")

    @classmethod
    def begin_lock_date(cls, value: Optional[str]) -> None:
        cls._date(value, "begin_lock_date")

    @classmethod
    def end_lock_date(cls, value: Optional[str]) -> None:
        cls._date(value, "end_lock_date")

    @staticmethod
    def day_mask(value: Optional[str]) -> None:
        if _is_empty(value):
            raise ValidationError(ValidationErrorKind.EMPTY, "dayMask - null or empty value", field="day_mask")
        if _is_sentinel(value, Sentinels.ALL):
            return
        if len(value) > FieldLimits.DAY_MASK_LEN:
            raise ValidationError(
                ValidationErrorKind.TOO_LONG,
                f"dayMask - invalid length for value [{value}]",
                field="day_mask"
            )
        if any(ch < "1" or ch > "7" for ch in value):
            logger.warning(f"dayMask [{value}] failed weekday validation")
            raise ValidationError(
                ValidationErrorKind.BAD_FORMAT,
                f"dayMask - invalid value [{value}]",
                field="day_mask"
            )

    def constraint(self, constraint: Constraint) -> None:
        """Validate every present temporal field of a constraint."""
        if constraint.timeout is not None:
            self.timeout(constraint.timeout)
        checks = (
            ("begin_time", self.begin_time),
            ("end_time", self.end_time),
            ("begin_date", self.begin_date),
            ("end_date", self.end_date),
            ("begin_lock_date", self.begin_lock_date),
            ("end_lock_date", self.end_lock_date),
            ("day_mask", self.day_mask),
        )
        for name, check in checks:
            value = getattr(constraint, name)
            if value is not None:
                check(value)

    @staticmethod
    def assert_not_null(
        obj: Any,
        kind: ValidationErrorKind = ValidationErrorKind.EMPTY,
        method: str = ""
    ) -> None:
        if obj is None:
            raise ValidationError(kind, f"assertContext detected null entity for method [{method}], error [{kind.value}]")

    @staticmethod
    def assert_not_null_or_empty(
        value: Any,
        kind: ValidationErrorKind = ValidationErrorKind.EMPTY,
        method: str = ""
    ) -> None:
        if _is_empty(value):
            raise ValidationError(kind, f"assertContext detected null or empty value for method [{method}], error [{kind.value}]")
