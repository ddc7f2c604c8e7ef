"""Validation engine for Glimlach form schemas.

Two separate questions are answered here:

1. Does a value have the right *shape* for its field? Every field kind is
   mapped to a small JSON Schema and checked with the jsonschema library, so
   a boolean field rejects strings, a single-select rejects values outside its
   options and a date field rejects anything that is not an ISO date. Errors
   are translated into FieldError records.
2. Is a step *complete*? This is the presence rule that gates forward
   navigation: a required string field must be non-empty after trimming, a
   required boolean must be ``True`` and a required multi-select must hold at
   least one option. The rule is evaluated per step, never globally.
"""

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Sequence

import jsonschema
from dateutil.parser import isoparser
from jsonschema import Draft7Validator, FormatChecker

from glimlach.errors import FieldError, StepIndexError
from glimlach.types import FieldErrorCode, FieldKind, FieldValue

if TYPE_CHECKING:
    from glimlach.schema import FieldDefinition, FormSchema


_FORMAT_CHECKER = FormatChecker(formats=())
_ISO_PARSER = isoparser()
_CALENDAR_DATE = re.compile(r"\d{4}-\d{2}-\d{2}")


@_FORMAT_CHECKER.checks("date", raises=ValueError)
def _is_iso_date(instance: Any) -> bool:
    # An untouched date input holds "", which is a valid (empty) value.
    if not isinstance(instance, str) or instance == "":
        return True
    # parse_isodate also takes "2024", "2024-W01" and "20240720"
    if not _CALENDAR_DATE.fullmatch(instance):
        raise ValueError(f"{instance!r} is not a YYYY-MM-DD date")
    _ISO_PARSER.parse_isodate(instance)
    return True


def field_json_schema(kind: FieldKind, options: Sequence[str] = ()) -> Dict[str, Any]:
    """Return the JSON Schema describing valid values for a field kind.

    Examples:
        >>> field_json_schema(FieldKind.BOOLEAN)
        {'type': 'boolean'}
        >>> field_json_schema(FieldKind.SINGLE_SELECT, ("a", "b"))
        {'type': 'string', 'enum': ['', 'a', 'b']}
    """
    if kind is FieldKind.BOOLEAN:
        return {"type": "boolean"}
    if kind is FieldKind.MULTI_SELECT:
        items: Dict[str, Any] = {"type": "string"}
        if options:
            items["enum"] = list(options)
        return {"type": "array", "items": items, "uniqueItems": True}
    if kind is FieldKind.SINGLE_SELECT and options:
        return {"type": "string", "enum": ["", *options]}
    if kind is FieldKind.DATE:
        return {"type": "string", "format": "date"}
    return {"type": "string"}


def build_validator(kind: FieldKind, options: Sequence[str] = ()) -> Draft7Validator:
    """Build a jsonschema validator for one field kind."""
    schema = field_json_schema(kind, options)
    Draft7Validator.check_schema(schema)
    return Draft7Validator(schema, format_checker=_FORMAT_CHECKER)


def check_value(
    field_id: str,
    kind: FieldKind,
    value: Any,
    validator: Optional[Draft7Validator] = None,
    options: Sequence[str] = (),
) -> List[FieldError]:
    """Check that ``value`` has the shape required by ``kind``.

    Returns an empty list when the value is acceptable. Multi-select values
    must be a ``set`` or ``frozenset``; a list is rejected even though its
    items might be valid, because values are compared as sets.
    """
    if kind is FieldKind.MULTI_SELECT:
        if not isinstance(value, (set, frozenset)):
            return [
                FieldError(
                    path=field_id,
                    code=FieldErrorCode.INVALID_TYPE,
                    message=f"Field '{field_id}' has invalid type. Expected a set of strings, got {type(value).__name__}",
                    expected="set",
                    received=type(value).__name__,
                )
            ]
        instance: Any = list(value)
    else:
        instance = value

    if validator is None:
        validator = build_validator(kind, options)
    return [_translate_error(field_id, error) for error in validator.iter_errors(instance)]


def is_present(kind: FieldKind, value: FieldValue) -> bool:
    """Presence rule used to gate required fields.

    Examples:
        >>> is_present(FieldKind.TEXT, "  Ana ")
        True
        >>> is_present(FieldKind.TEXT, "   ")
        False
        >>> is_present(FieldKind.BOOLEAN, False)
        False
        >>> is_present(FieldKind.MULTI_SELECT, frozenset({"x"}))
        True
    """
    if kind is FieldKind.BOOLEAN:
        return value is True
    if kind is FieldKind.MULTI_SELECT:
        return isinstance(value, (set, frozenset)) and len(value) > 0
    return isinstance(value, str) and value.strip() != ""


def _translate_error(field_id: str, error: jsonschema.ValidationError) -> FieldError:
    """Translate a jsonschema ValidationError to a FieldError for ``field_id``."""
    if error.validator == "type":
        expected_type = error.validator_value
        received_type = type(error.instance).__name__
        return FieldError(
            path=field_id,
            code=FieldErrorCode.INVALID_TYPE,
            message=f"Field '{field_id}' has invalid type. Expected {expected_type}, got {received_type}",
            expected=expected_type,
            received=received_type,
        )

    if error.validator in ("enum", "const"):
        return FieldError(
            path=field_id,
            code=FieldErrorCode.INVALID_VALUE,
            message=f"Field '{field_id}' has invalid value. Must be one of: {error.validator_value}",
            expected=error.validator_value,
            received=error.instance,
        )

    if error.validator == "format":
        return FieldError(
            path=field_id,
            code=FieldErrorCode.INVALID_FORMAT,
            message=f"Field '{field_id}' has invalid format. Expected format: {error.validator_value}",
            expected=error.validator_value,
            received=error.instance,
        )

    return FieldError(
        path=field_id,
        code=FieldErrorCode.INVALID_VALUE,
        message=f"Field '{field_id}' validation failed: {error.message}",
        expected=error.validator_value,
        received=error.instance,
    )


@dataclass(frozen=True)
class ValidationResult:
    """Result of checking one step of a form.

    Attributes:
        is_valid: Whether every required field of the step is present
        step_id: Id of the checked step
        step_index: Index of the checked step
        errors: One REQUIRED FieldError per missing field (empty if valid)
        missing_fields: Ids of the required fields that are not present
    """
    is_valid: bool
    step_id: str
    step_index: int
    errors: List[FieldError]
    missing_fields: List[str]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for serialization."""
        return {
            "isValid": self.is_valid,
            "stepId": self.step_id,
            "stepIndex": self.step_index,
            "errors": [e.to_dict() for e in self.errors],
            "missingFields": list(self.missing_fields),
        }


class ValidationEngine:
    """Per-schema validator for field values and step completeness.

    One engine is built for each FormSchema when the schema is created; it
    compiles a jsonschema validator per field so repeated checks are cheap.

    Examples:
        >>> from glimlach.schema import FieldDefinition, FormSchema, StepDefinition
        >>> schema = FormSchema(
        ...     form_id="demo",
        ...     steps=(StepDefinition(
        ...         id="who",
        ...         fields=(FieldDefinition(id="name", kind=FieldKind.TEXT),),
        ...         required_field_ids=("name",),
        ...     ),),
        ... )
        >>> engine = ValidationEngine(schema)
        >>> engine.validate_step({"name": ""}, 0).missing_fields
        ['name']
    """

    def __init__(self, schema: "FormSchema") -> None:
        self.schema = schema
        self._validators: Dict[str, Draft7Validator] = {
            f.id: build_validator(f.kind, f.options) for f in schema.iter_fields()
        }

    def check_field(self, field_id: str, value: Any) -> List[FieldError]:
        """Check a value against the declared kind of ``field_id``.

        Raises:
            UnknownFieldError: If the schema does not declare ``field_id``
        """
        field_def = self.schema.get_field(field_id)
        return check_value(
            field_id,
            field_def.kind,
            value,
            validator=self._validators[field_id],
        )

    def validate_step(self, values: Mapping[str, FieldValue], step_index: int) -> ValidationResult:
        """Apply the presence rule to the required fields of one step.

        Raises:
            StepIndexError: If ``step_index`` is outside the schema
        """
        steps = self.schema.steps
        if not 0 <= step_index < len(steps):
            raise StepIndexError(step_index, len(steps))

        step = steps[step_index]
        errors: List[FieldError] = []
        for field_id in step.required_field_ids:
            field_def = self.schema.get_field(field_id)
            if not is_present(field_def.kind, values.get(field_id, field_def.default_value)):
                errors.append(
                    FieldError(
                        path=field_id,
                        code=FieldErrorCode.REQUIRED,
                        message=f"Field '{field_id}' is required but is empty",
                        expected="required field",
                    )
                )

        return ValidationResult(
            is_valid=not errors,
            step_id=step.id,
            step_index=step_index,
            errors=errors,
            missing_fields=[e.path for e in errors],
        )

    def first_invalid_step(self, values: Mapping[str, FieldValue]) -> Optional[ValidationResult]:
        """Return the result for the first incomplete step, or None if all are complete."""
        for index in range(len(self.schema.steps)):
            result = self.validate_step(values, index)
            if not result.is_valid:
                return result
        return None


__all__ = [
    "ValidationEngine",
    "ValidationResult",
    "field_json_schema",
    "build_validator",
    "check_value",
    "is_present",
]
