"""Core type definitions for the Glimlach step-form engine.

This module defines the fundamental enums used throughout the package:
- FieldKind: Kinds of input a form field can hold
- FormStatus: Submission lifecycle of one form session
- EventType: Event types emitted while a form session progresses
- FieldErrorCode: Validation error codes for individual fields

It also declares the FieldValue alias, the union of value shapes a field
can carry (a string, a boolean, or a set of strings).
"""

from enum import Enum
from typing import FrozenSet, Union

from typing_extensions import TypeAlias


FieldValue: TypeAlias = Union[str, bool, FrozenSet[str]]
"""Value held by a single form field.

String kinds hold ``str``, boolean fields hold ``bool`` and multi-select
fields hold a ``frozenset`` of option strings.
"""


class FieldKind(str, Enum):
    """Kind of a form field.

    The kind decides which value shape a field accepts and how the
    "present" rule is evaluated when a field is required.
    """
    TEXT = "text"
    EMAIL = "email"
    PHONE = "phone"
    NUMBER = "number"
    DATE = "date"
    SINGLE_SELECT = "single-select"
    MULTI_SELECT = "multi-select"
    BOOLEAN = "boolean"
    FREE_TEXT = "free-text"


class FormStatus(str, Enum):
    """Lifecycle status of a form session.

    ``submitted`` is terminal; ``failed`` can be retried.
    """
    EDITING = "editing"
    SUBMITTING = "submitting"
    SUBMITTED = "submitted"
    FAILED = "failed"


class EventType(str, Enum):
    """Event types emitted by a FormController."""
    FORM_INITIALIZED = "form.initialized"
    FIELD_UPDATED = "field.updated"
    STEP_ADVANCED = "step.advanced"
    STEP_RETREATED = "step.retreated"
    SUBMISSION_STARTED = "submission.started"
    SUBMISSION_SUCCEEDED = "submission.succeeded"
    SUBMISSION_FAILED = "submission.failed"


class FieldErrorCode(str, Enum):
    """Validation error codes for individual field failures."""
    REQUIRED = "required"
    INVALID_TYPE = "invalid_type"
    INVALID_VALUE = "invalid_value"
    INVALID_FORMAT = "invalid_format"


__all__ = [
    "FieldValue",
    "FieldKind",
    "FormStatus",
    "EventType",
    "FieldErrorCode",
]
