"""Structured error types for the Glimlach step-form engine.

Errors fall into three groups:

- Precondition violations (``PreconditionError`` and subclasses). These are
  programming or UI-gating bugs: a well-behaved UI disables its "next" and
  "submit" controls whenever the engine says an operation is not allowed, so
  they should never reach an end user.
- Completeness violations (``IncompleteFormError``). User-facing and
  recoverable by completing the named step.
- Schema definition errors (``SchemaDefinitionError``), raised while building
  a FormSchema at startup.

Relay and transport failures are never raised; they surface as the
``failed`` status of a FormState.

Field-level details travel as ``FieldError`` records that serialize to the
same camelCase dict shape used elsewhere in the package.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from glimlach.types import FieldErrorCode


@dataclass(frozen=True)
class FieldError:
    """Per-field validation error details.

    Attributes:
        path: Field id the error refers to (e.g., "guardianName")
        code: Specific validation error code
        message: Human-readable error description
        expected: Optional - what was expected (kind, option list, etc.)
        received: Optional - what was actually received

    Examples:
        >>> err = FieldError(
        ...     path="email",
        ...     code=FieldErrorCode.REQUIRED,
        ...     message="Field 'email' is required but is empty",
        ... )
        >>> err.to_dict()["code"]
        'required'
    """
    path: str
    code: FieldErrorCode
    message: str
    expected: Optional[Any] = None
    received: Optional[Any] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for serialization."""
        result: Dict[str, Any] = {
            "path": self.path,
            "code": self.code.value if isinstance(self.code, FieldErrorCode) else self.code,
            "message": self.message,
        }
        if self.expected is not None:
            result["expected"] = self.expected
        if self.received is not None:
            result["received"] = self.received
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FieldError":
        """Create FieldError from dict."""
        code = data["code"]
        if isinstance(code, str):
            code = FieldErrorCode(code)
        return cls(
            path=data["path"],
            code=code,
            message=data["message"],
            expected=data.get("expected"),
            received=data.get("received"),
        )


class FormError(Exception):
    """Base class for every error raised by the step-form engine."""


class SchemaDefinitionError(FormError):
    """Raised when a FormSchema, StepDefinition or FieldDefinition is inconsistent."""


class PreconditionError(FormError):
    """An operation was called while its precondition did not hold."""


class UnknownFieldError(PreconditionError):
    """Raised when a field id is not declared in the form's schema.

    Attributes:
        field_id: The undeclared field id
        form_id: Id of the schema that was searched
    """

    def __init__(self, field_id: str, form_id: str):
        self.field_id = field_id
        self.form_id = form_id
        super().__init__(f"Form '{form_id}' has no field '{field_id}'")


class InvalidFieldValueError(PreconditionError):
    """Raised when a value does not match the declared kind of its field.

    Attributes:
        field_id: The field being set
        errors: Field-level details explaining the mismatch
    """

    def __init__(self, field_id: str, errors: Sequence[FieldError]):
        self.field_id = field_id
        self.errors = list(errors)
        detail = "; ".join(e.message for e in self.errors) or "value rejected"
        super().__init__(f"Invalid value for field '{field_id}': {detail}")


class StepNotValidError(PreconditionError):
    """Raised when moving forward from a step whose required fields are not present.

    Attributes:
        step_id: Id of the step that blocks progress
        step_index: Index of that step
        missing_fields: Required field ids that are not present
    """

    def __init__(self, step_id: str, step_index: int, missing_fields: Sequence[str]):
        self.step_id = step_id
        self.step_index = step_index
        self.missing_fields = list(missing_fields)
        super().__init__(
            f"Step '{step_id}' (index {step_index}) is not valid; "
            f"missing required fields: {', '.join(self.missing_fields)}"
        )


class StepIndexError(PreconditionError, IndexError):
    """Raised when a step index is outside the schema's step range."""

    def __init__(self, step_index: int, step_count: int):
        self.step_index = step_index
        self.step_count = step_count
        super().__init__(f"Step index {step_index} out of range (form has {step_count} steps)")


class AtFirstStepError(PreconditionError):
    """Raised by retreat when the form is already at step 0."""

    def __init__(self) -> None:
        super().__init__("Cannot retreat: already at the first step")


class AtLastStepError(PreconditionError):
    """Raised by advance when the form is already at its final step."""

    def __init__(self, step_index: int):
        self.step_index = step_index
        super().__init__(f"Cannot advance: step {step_index} is the last step")


class IncompleteFormError(FormError):
    """Raised when a payload is requested while some step is still invalid.

    This is a user-facing condition: the message names the first invalid step
    so the UI can send the user back to it.

    Attributes:
        step_id: Id of the first invalid step
        step_index: Index of that step
        errors: One REQUIRED FieldError per missing field on that step
    """

    def __init__(self, step_id: str, step_index: int, errors: Sequence[FieldError]):
        self.step_id = step_id
        self.step_index = step_index
        self.errors = list(errors)
        super().__init__(
            f"Form is incomplete: step '{step_id}' is missing "
            f"{', '.join(e.path for e in self.errors)}"
        )

    @property
    def missing_fields(self) -> List[str]:
        return [e.path for e in self.errors]


__all__ = [
    "FieldError",
    "FormError",
    "SchemaDefinitionError",
    "PreconditionError",
    "UnknownFieldError",
    "InvalidFieldValueError",
    "StepNotValidError",
    "StepIndexError",
    "AtFirstStepError",
    "AtLastStepError",
    "IncompleteFormError",
]
