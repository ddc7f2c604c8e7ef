"""Form session state and its status state machine.

A FormState is the complete, immutable state of one form session: the
schema, the current values, the step being shown and the submission status.
Engine operations never modify a FormState in place; they return a new one,
so any UI binding can detect changes by identity.

Status follows a small state machine:

    editing    -> submitting, failed
    submitting -> submitted, failed
    failed     -> submitting, editing, failed
    submitted  -> (terminal)

Usage:
    >>> from glimlach.state_machine import VALID_TRANSITIONS
    >>> from glimlach.types import FormStatus
    >>> sorted(s.value for s in VALID_TRANSITIONS[FormStatus.EDITING])
    ['failed', 'submitting']
"""

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Set

from glimlach.errors import PreconditionError
from glimlach.schema import FormSchema
from glimlach.types import FieldValue, FormStatus


class InvalidStateTransitionError(PreconditionError):
    """Raised when attempting an invalid status transition.

    This covers both illegal status changes and attempts to edit or navigate
    a form whose values are locked (``submitting`` or ``submitted``).

    Attributes:
        current_state: The status before the attempted transition
        target_state: The status that was attempted
    """

    def __init__(self, current_state: FormStatus, target_state: FormStatus, message: str):
        self.current_state = current_state
        self.target_state = target_state
        super().__init__(message)


# Maps each status to the set of statuses it can move to
VALID_TRANSITIONS: Dict[FormStatus, Set[FormStatus]] = {
    FormStatus.EDITING: {
        FormStatus.SUBMITTING,
        FormStatus.FAILED,
    },
    FormStatus.SUBMITTING: {
        FormStatus.SUBMITTED,
        FormStatus.FAILED,
    },
    FormStatus.FAILED: {
        FormStatus.SUBMITTING,
        FormStatus.EDITING,
        FormStatus.FAILED,
    },
    # Terminal
    FormStatus.SUBMITTED: set(),
}

# Statuses in which values must not change
LOCKED_STATUSES = frozenset({FormStatus.SUBMITTING, FormStatus.SUBMITTED})


def can_transition(current: FormStatus, target: FormStatus) -> bool:
    """Check if a status transition is valid."""
    return target in VALID_TRANSITIONS.get(current, set())


def check_transition(current: FormStatus, target: FormStatus) -> None:
    """Raise InvalidStateTransitionError unless ``current -> target`` is allowed."""
    if can_transition(current, target):
        return
    valid = VALID_TRANSITIONS[current]
    if valid:
        message = (
            f"Invalid state transition: cannot transition from "
            f"'{current.value}' to '{target.value}'. "
            f"Valid transitions from '{current.value}' are: "
            f"{', '.join(sorted(s.value for s in valid))}"
        )
    else:
        message = (
            f"Invalid state transition: '{current.value}' is a terminal state, "
            f"no transitions are allowed."
        )
    raise InvalidStateTransitionError(current_state=current, target_state=target, message=message)


@dataclass(frozen=True)
class FormState:
    """State of one form session.

    Attributes:
        schema: The schema this session was initialized from
        values: Read-only mapping with an entry for every declared field
        current_step_index: Index of the step being shown
        status: Submission status
        failure_reason: Human-readable reason, set only while ``failed``
        response: Data returned by the relay after a successful submission

    Examples:
        >>> from glimlach.engine import initialize
        >>> from glimlach.forms import get_schema
        >>> state = initialize(get_schema("sponsor"))
        >>> state.status
        <FormStatus.EDITING: 'editing'>
        >>> state.current_step_index
        0
    """
    schema: FormSchema
    values: Mapping[str, FieldValue]
    current_step_index: int = 0
    status: FormStatus = FormStatus.EDITING
    failure_reason: Optional[str] = None
    response: Optional[Mapping[str, Any]] = field(default=None, compare=False)

    def __post_init__(self):
        if not isinstance(self.values, MappingProxyType):
            object.__setattr__(self, "values", MappingProxyType(dict(self.values)))
        if isinstance(self.status, str) and not isinstance(self.status, FormStatus):
            object.__setattr__(self, "status", FormStatus(self.status))

    @property
    def form_id(self) -> str:
        return self.schema.form_id

    @property
    def current_step(self):
        return self.schema.steps[self.current_step_index]

    @property
    def is_first_step(self) -> bool:
        return self.current_step_index == 0

    @property
    def is_last_step(self) -> bool:
        return self.current_step_index == self.schema.step_count - 1

    @property
    def is_locked(self) -> bool:
        """True while values must not be mutated (submitting or submitted)."""
        return self.status in LOCKED_STATUSES

    def with_status(self, target: FormStatus, **changes: Any) -> "FormState":
        """Return a copy moved to ``target`` status.

        Raises:
            InvalidStateTransitionError: If the transition is not allowed
        """
        check_transition(self.status, target)
        if target is not FormStatus.FAILED:
            changes.setdefault("failure_reason", None)
        return replace(self, status=target, **changes)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the state to a dictionary (sets become sorted lists).

        Examples:
            >>> from glimlach.engine import initialize
            >>> from glimlach.forms import get_schema
            >>> data = initialize(get_schema("quick_donate")).to_dict()
            >>> data["status"], data["currentStepIndex"]
            ('editing', 0)
        """
        values: Dict[str, Any] = {}
        for key, value in self.values.items():
            values[key] = sorted(value) if isinstance(value, frozenset) else value
        result: Dict[str, Any] = {
            "formId": self.form_id,
            "currentStepIndex": self.current_step_index,
            "status": self.status.value,
            "values": values,
        }
        if self.failure_reason is not None:
            result["failureReason"] = self.failure_reason
        if self.response is not None:
            result["response"] = dict(self.response)
        return result


__all__ = [
    "FormState",
    "InvalidStateTransitionError",
    "VALID_TRANSITIONS",
    "LOCKED_STATUSES",
    "can_transition",
    "check_transition",
]
