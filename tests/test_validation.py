"""Unit tests for the validation engine.

Tests cover:
- Value shape checks per field kind (type, options, date format)
- The presence rule for required fields
- Step validation results and error details
- Purity of step validation
"""

import pytest

from glimlach.errors import FieldError, StepIndexError, UnknownFieldError
from glimlach.schema import FieldDefinition, FormSchema, StepDefinition
from glimlach.types import FieldErrorCode, FieldKind
from glimlach.validation import (
    ValidationEngine,
    check_value,
    field_json_schema,
    is_present,
)


def make_schema() -> FormSchema:
    return FormSchema(
        form_id="booking",
        steps=(
            StepDefinition(
                id="who",
                fields=(
                    FieldDefinition("name", FieldKind.TEXT),
                    FieldDefinition("email", FieldKind.EMAIL),
                    FieldDefinition("phone", FieldKind.PHONE),
                ),
                required_field_ids=("name", "email"),
            ),
            StepDefinition(
                id="when",
                fields=(
                    FieldDefinition("date", FieldKind.DATE),
                    FieldDefinition("venue", FieldKind.SINGLE_SELECT, options=("indoor", "outdoor")),
                    FieldDefinition("extras", FieldKind.MULTI_SELECT, options=("music", "food")),
                    FieldDefinition("consent", FieldKind.BOOLEAN),
                ),
                required_field_ids=("date", "venue", "extras", "consent"),
            ),
        ),
    )


class TestFieldJsonSchema:
    """Test the JSON Schema generated per kind."""

    def test_text(self):
        assert field_json_schema(FieldKind.TEXT) == {"type": "string"}

    def test_multi_select_with_options(self):
        assert field_json_schema(FieldKind.MULTI_SELECT, ("a",)) == {
            "type": "array",
            "items": {"type": "string", "enum": ["a"]},
            "uniqueItems": True,
        }

    def test_single_select_allows_empty_choice(self):
        assert field_json_schema(FieldKind.SINGLE_SELECT, ("a",))["enum"] == ["", "a"]

    def test_date_uses_format(self):
        assert field_json_schema(FieldKind.DATE) == {"type": "string", "format": "date"}


class TestCheckValue:
    """Test value shape checks."""

    def test_valid_text(self):
        assert check_value("name", FieldKind.TEXT, "Ana") == []

    def test_boolean_rejects_string(self):
        errors = check_value("consent", FieldKind.BOOLEAN, "true")
        assert len(errors) == 1
        assert errors[0].code == FieldErrorCode.INVALID_TYPE
        assert errors[0].path == "consent"
        assert errors[0].expected == "boolean"
        assert errors[0].received == "str"

    def test_text_rejects_boolean(self):
        errors = check_value("name", FieldKind.TEXT, True)
        assert errors[0].code == FieldErrorCode.INVALID_TYPE

    def test_single_select_rejects_unknown_option(self):
        errors = check_value("venue", FieldKind.SINGLE_SELECT, "roof", options=("indoor", "outdoor"))
        assert errors[0].code == FieldErrorCode.INVALID_VALUE
        assert errors[0].received == "roof"

    def test_single_select_without_options_accepts_any_string(self):
        assert check_value("venue", FieldKind.SINGLE_SELECT, "anything") == []

    def test_multi_select_requires_a_set(self):
        errors = check_value("extras", FieldKind.MULTI_SELECT, ["music"])
        assert errors[0].code == FieldErrorCode.INVALID_TYPE
        assert errors[0].received == "list"

    def test_multi_select_accepts_set_and_frozenset(self):
        assert check_value("extras", FieldKind.MULTI_SELECT, {"music"}, options=("music", "food")) == []
        assert check_value("extras", FieldKind.MULTI_SELECT, frozenset(), options=("music",)) == []

    def test_multi_select_rejects_unknown_option(self):
        errors = check_value("extras", FieldKind.MULTI_SELECT, frozenset({"fireworks"}), options=("music",))
        assert errors[0].code == FieldErrorCode.INVALID_VALUE

    def test_date_accepts_iso_date(self):
        assert check_value("date", FieldKind.DATE, "2025-07-20") == []

    def test_date_accepts_empty_string(self):
        assert check_value("date", FieldKind.DATE, "") == []

    def test_date_rejects_garbage(self):
        errors = check_value("date", FieldKind.DATE, "next friday")
        assert errors[0].code == FieldErrorCode.INVALID_FORMAT

    def test_date_rejects_impossible_date(self):
        errors = check_value("date", FieldKind.DATE, "2025-02-30")
        assert errors[0].code == FieldErrorCode.INVALID_FORMAT

    @pytest.mark.parametrize("value", ["2024", "2024-W01", "20240720", "2024-07-20T10:00", " 2024-07-20"])
    def test_date_requires_calendar_form(self, value):
        """Only YYYY-MM-DD is accepted, not the other ISO 8601 date forms."""
        errors = check_value("date", FieldKind.DATE, value)
        assert [e.code for e in errors] == [FieldErrorCode.INVALID_FORMAT]
        assert errors[0].received == value

    def test_email_format_is_not_checked(self):
        """Email and phone hold free strings; only presence matters."""
        assert check_value("email", FieldKind.EMAIL, "not-an-email") == []


class TestPresenceRule:
    """Test the presence rule for required fields."""

    def test_whitespace_string_is_absent(self):
        assert not is_present(FieldKind.TEXT, "  \t ")

    def test_non_empty_string_is_present(self):
        assert is_present(FieldKind.FREE_TEXT, "x")

    def test_false_boolean_is_absent(self):
        assert not is_present(FieldKind.BOOLEAN, False)

    def test_true_boolean_is_present(self):
        assert is_present(FieldKind.BOOLEAN, True)

    def test_empty_multi_select_is_absent(self):
        assert not is_present(FieldKind.MULTI_SELECT, frozenset())

    def test_empty_single_select_is_absent(self):
        assert not is_present(FieldKind.SINGLE_SELECT, "")


class TestValidationEngine:
    """Test step validation through the per-schema engine."""

    def test_defaults_fail_required_fields(self):
        schema = make_schema()
        result = ValidationEngine(schema).validate_step(schema.defaults(), 0)
        assert not result.is_valid
        assert result.step_id == "who"
        assert result.missing_fields == ["name", "email"]
        assert all(e.code == FieldErrorCode.REQUIRED for e in result.errors)

    def test_optional_fields_do_not_block(self):
        schema = make_schema()
        values = dict(schema.defaults(), name="Ana", email="ana@example.org")
        assert ValidationEngine(schema).validate_step(values, 0).is_valid

    def test_only_the_given_step_is_checked(self):
        """Missing fields on step 1 do not affect step 0."""
        schema = make_schema()
        values = dict(schema.defaults(), name="Ana", email="ana@example.org")
        engine = ValidationEngine(schema)
        assert engine.validate_step(values, 0).is_valid
        assert not engine.validate_step(values, 1).is_valid

    def test_second_step_complete(self):
        schema = make_schema()
        values = dict(
            schema.defaults(),
            date="2025-07-20",
            venue="outdoor",
            extras=frozenset({"food"}),
            consent=True,
        )
        assert ValidationEngine(schema).validate_step(values, 1).is_valid

    def test_missing_value_falls_back_to_default(self):
        schema = make_schema()
        result = ValidationEngine(schema).validate_step({}, 1)
        assert result.missing_fields == ["date", "venue", "extras", "consent"]

    def test_step_index_out_of_range(self):
        schema = make_schema()
        with pytest.raises(StepIndexError):
            ValidationEngine(schema).validate_step(schema.defaults(), 2)
        with pytest.raises(IndexError):
            ValidationEngine(schema).validate_step(schema.defaults(), -1)

    def test_validation_is_pure(self):
        """Same inputs give the same result and the values are not touched."""
        schema = make_schema()
        values = dict(schema.defaults(), name="Ana")
        snapshot = dict(values)
        engine = ValidationEngine(schema)
        first = engine.validate_step(values, 0)
        second = engine.validate_step(values, 0)
        assert first == second
        assert values == snapshot

    def test_first_invalid_step(self):
        schema = make_schema()
        engine = ValidationEngine(schema)
        values = dict(schema.defaults(), name="Ana", email="ana@example.org")
        assert engine.first_invalid_step(values).step_index == 1
        values.update(date="2025-07-20", venue="indoor", extras=frozenset({"music"}), consent=True)
        assert engine.first_invalid_step(values) is None

    def test_check_field_unknown(self):
        with pytest.raises(UnknownFieldError):
            ValidationEngine(make_schema()).check_field("ghost", "x")

    def test_check_field_uses_declared_options(self):
        errors = ValidationEngine(make_schema()).check_field("venue", "roof")
        assert errors[0].code == FieldErrorCode.INVALID_VALUE


class TestValidationResultSerialization:
    """Test to_dict of validation results and errors."""

    def test_result_to_dict(self):
        schema = make_schema()
        data = ValidationEngine(schema).validate_step(dict(schema.defaults(), name="Ana"), 0).to_dict()
        assert data["isValid"] is False
        assert data["stepId"] == "who"
        assert data["missingFields"] == ["email"]
        assert data["errors"][0]["code"] == "required"

    def test_field_error_round_trip(self):
        error = FieldError(
            path="venue",
            code=FieldErrorCode.INVALID_VALUE,
            message="bad",
            expected=["indoor"],
            received="roof",
        )
        assert FieldError.from_dict(error.to_dict()) == error

    def test_field_error_omits_empty_details(self):
        error = FieldError(path="name", code=FieldErrorCode.REQUIRED, message="missing")
        assert error.to_dict() == {"path": "name", "code": "required", "message": "missing"}


class TestErrorCodes:
    """Test the codes FieldError records can carry."""

    def test_codes(self):
        assert [code.value for code in FieldErrorCode] == [
            "required",
            "invalid_type",
            "invalid_value",
            "invalid_format",
        ]
