"""Tests for FieldValidator."""

import pytest

from neo_rbac.core.exceptions import ValidationError, ValidationErrorKind
from neo_rbac.features.constraints.entities.constraint import Constraint
from neo_rbac.features.constraints.validators.field_validator import FieldValidator


class TestTimeFields:
    """Tests for begin/end time grammar."""

    @pytest.mark.parametrize("value", ["0000", "2359", "1230", "0800"])
    def test_valid_times(self, validator, value):
        validator.begin_time(value)
        validator.end_time(value)

    @pytest.mark.parametrize("value", ["2459", "2460", "2400", "1260", "12a0", "-100"])
    def test_out_of_range_times_are_bad_format(self, validator, value):
        with pytest.raises(ValidationError) as exc_info:
            validator.begin_time(value)
        assert exc_info.value.kind == ValidationErrorKind.BAD_FORMAT
        assert exc_info.value.field == "begin_time"

    @pytest.mark.parametrize("value", ["123", "12345", "", None])
    def test_wrong_length_times(self, validator, value):
        with pytest.raises(ValidationError) as exc_info:
            validator.end_time(value)
        assert exc_info.value.kind == ValidationErrorKind.WRONG_LENGTH


class TestDateFields:
    """Tests for date grammar and the 'none' sentinel."""

    @pytest.mark.parametrize("value", ["20240101", "19991231", "20240229", "none", "NONE"])
    def test_valid_dates(self, validator, value):
        validator.begin_date(value)
        validator.end_lock_date(value)

    def test_empty_date_rejected(self, validator):
        with pytest.raises(ValidationError) as exc_info:
            validator.end_date("")
        assert exc_info.value.kind == ValidationErrorKind.EMPTY

    def test_short_date_wrong_length(self, validator):
        with pytest.raises(ValidationError) as exc_info:
            validator.begin_date("2024010")
        assert exc_info.value.kind == ValidationErrorKind.WRONG_LENGTH

    @pytest.mark.parametrize("value", ["20240230", "20231301", "2024-1-1", "abcdefgh", "20230229"])
    def test_impossible_dates_are_bad_format(self, validator, value):
        with pytest.raises(ValidationError) as exc_info:
            validator.begin_lock_date(value)
        assert exc_info.value.kind == ValidationErrorKind.BAD_FORMAT


class TestDayMask:
    """Tests for the weekday mask."""

    @pytest.mark.parametrize("value", ["1357", "1", "1234567", "all", "ALL"])
    def test_valid_masks(self, validator, value):
        validator.day_mask(value)

    def test_digit_outside_week_is_bad_format(self, validator):
        with pytest.raises(ValidationError) as exc_info:
            validator.day_mask("8")
        assert exc_info.value.kind == ValidationErrorKind.BAD_FORMAT

    def test_zero_is_bad_format(self, validator):
        with pytest.raises(ValidationError) as exc_info:
            validator.day_mask("0123")
        assert exc_info.value.kind == ValidationErrorKind.BAD_FORMAT

    def test_too_long_mask(self, validator):
        with pytest.raises(ValidationError) as exc_info:
            validator.day_mask("12345671")
        assert exc_info.value.kind == ValidationErrorKind.TOO_LONG

    def test_empty_mask(self, validator):
        with pytest.raises(ValidationError) as exc_info:
            validator.day_mask("")
        assert exc_info.value.kind == ValidationErrorKind.EMPTY


class TestSafeText:
    """Tests for filter-safe text."""

    def test_filter_metacharacters_rejected(self, validator):
        with pytest.raises(ValidationError) as exc_info:
            validator.safe_text("a)(b", 10)
        assert exc_info.value.kind == ValidationErrorKind.UNSAFE_CHARS

    @pytest.mark.parametrize("value", ["a*", "x|y", "a&b", "a\\b", "!x", "r1$x", "a\n"])
    def test_other_unsafe_values(self, validator, value):
        with pytest.raises(ValidationError) as exc_info:
            validator.safe_text(value)
        assert exc_info.value.kind == ValidationErrorKind.UNSAFE_CHARS

    @pytest.mark.parametrize("value", ["alice", "John O'Neil", "ops-team_1", "a.b@example.com", "x:y"])
    def test_safe_values(self, validator, value):
        validator.safe_text(value)

    def test_empty_rejected(self, validator):
        with pytest.raises(ValidationError) as exc_info:
            validator.safe_text("", 10)
        assert exc_info.value.kind == ValidationErrorKind.EMPTY

    def test_too_long_rejected(self, validator):
        with pytest.raises(ValidationError) as exc_info:
            validator.safe_text("abcdefghijk", 10)
        assert exc_info.value.kind == ValidationErrorKind.TOO_LONG

    def test_default_max_is_field_length(self):
        validator = FieldValidator(field_length=5)
        with pytest.raises(ValidationError) as exc_info:
            validator.safe_text("abcdef")
        assert exc_info.value.kind == ValidationErrorKind.TOO_LONG

    def test_encode_safe_text_returns_value(self, validator):
        assert validator.encode_safe_text("alice") == "alice"


class TestIdentityFields:
    """Tests for user id, org unit, password, description and properties."""

    def test_user_id_empty(self, validator):
        for value in (None, ""):
            with pytest.raises(ValidationError) as exc_info:
                validator.user_id(value)
            assert exc_info.value.kind == ValidationErrorKind.EMPTY

    def test_user_id_too_long(self, validator):
        validator.user_id("u" * 40)
        with pytest.raises(ValidationError) as exc_info:
            validator.user_id("u" * 41)
        assert exc_info.value.kind == ValidationErrorKind.TOO_LONG

    def test_org_unit_uses_configured_length(self):
        validator = FieldValidator(field_length=5)
        validator.org_unit("abcde")
        with pytest.raises(ValidationError) as exc_info:
            validator.org_unit("abcdef")
        assert exc_info.value.kind == ValidationErrorKind.TOO_LONG

    def test_password_length_only(self, validator):
        validator.password(b"x" * 50)
        validator.password("weak")
        with pytest.raises(ValidationError) as exc_info:
            validator.password("x" * 51)
        assert exc_info.value.kind == ValidationErrorKind.TOO_LONG

    def test_description(self, validator):
        validator.description("Operations team member")
        with pytest.raises(ValidationError) as exc_info:
            validator.description("d" * 181)
        assert exc_info.value.kind == ValidationErrorKind.TOO_LONG
        with pytest.raises(ValidationError) as exc_info:
            validator.description("bad*desc")
        assert exc_info.value.kind == ValidationErrorKind.UNSAFE_CHARS

    def test_properties_checks_keys_and_values(self, validator):
        validator.properties({"a": "1", "team": "ops"})
        validator.properties(None)
        with pytest.raises(ValidationError) as exc_info:
            validator.properties({"b)": "2"})
        assert exc_info.value.kind == ValidationErrorKind.UNSAFE_CHARS
        with pytest.raises(ValidationError) as exc_info:
            validator.properties({"a": "v" * 101})
        assert exc_info.value.kind == ValidationErrorKind.TOO_LONG

    def test_property_key_rejects_pair_separator(self, validator):
        validator.properties({"url": "http://x"})
        with pytest.raises(ValidationError) as exc_info:
            validator.properties({"a:b": "c"})
        assert exc_info.value.kind == ValidationErrorKind.UNSAFE_CHARS
        assert exc_info.value.details["field"] == "property key"


class TestTimeoutAndGuards:
    """Tests for timeout range and assertion helpers."""

    @pytest.mark.parametrize("value", [0, 1, 3600, 2 ** 31 - 2])
    def test_valid_timeouts(self, value):
        FieldValidator.timeout(value)

    @pytest.mark.parametrize("value", [-1, 2 ** 31 - 1, None, "30", True])
    def test_invalid_timeouts(self, value):
        with pytest.raises(ValidationError) as exc_info:
            FieldValidator.timeout(value)
        assert exc_info.value.kind == ValidationErrorKind.OUT_OF_RANGE

    def test_assert_not_null_uses_given_kind(self):
        FieldValidator.assert_not_null("x")
        with pytest.raises(ValidationError) as exc_info:
            FieldValidator.assert_not_null(None, ValidationErrorKind.BAD_FORMAT, "create")
        assert exc_info.value.kind == ValidationErrorKind.BAD_FORMAT
        assert "create" in exc_info.value.detail

    def test_assert_not_null_or_empty(self):
        with pytest.raises(ValidationError):
            FieldValidator.assert_not_null_or_empty("", method="reset")
        with pytest.raises(ValidationError):
            FieldValidator.assert_not_null_or_empty({}, method="props")


class TestConstraintValidation:
    """Tests for whole-constraint validation."""

    def test_absent_fields_are_skipped(self, validator):
        validator.constraint(Constraint(name="r1"))
        validator.constraint(Constraint(name="r1", begin_date="20240101", end_date="none"))

    def test_first_bad_field_reported(self, validator):
        with pytest.raises(ValidationError) as exc_info:
            validator.constraint(Constraint(name="r1", timeout=30, begin_time="2500", day_mask="9"))
        assert exc_info.value.field == "begin_time"
