"""Step form engine.

The engine drives a linear multi-step form described by a FormSchema. It is
a set of plain functions over immutable FormState values: every operation
returns a new state and leaves its input untouched, so a UI can re-render
whenever the state it holds changes identity.

Lifecycle of one form session:

    state = initialize(schema)
    state = set_field_value(state, "guardianName", "Ana")
    state = advance(state)                     # gated by is_step_valid
    ...
    state = await submit(state, relay)         # submitted or failed

Synchronous operations raise PreconditionError subclasses when called in a
situation a correctly gated UI would never allow. ``submit`` never raises:
every outcome, including an incomplete form or a broken relay, is reported
through the returned state's status.
"""

import logging
from dataclasses import replace
from typing import Any, Callable, Optional

from glimlach.errors import (
    AtFirstStepError,
    AtLastStepError,
    IncompleteFormError,
    InvalidFieldValueError,
    StepIndexError,
    StepNotValidError,
)
from glimlach.payload import SubmissionPayload
from glimlach.relay import GENERIC_FAILURE_REASON, Relay, RelayResult
from glimlach.schema import FormSchema
from glimlach.state_machine import (
    LOCKED_STATUSES,
    FormState,
    InvalidStateTransitionError,
)
from glimlach.types import FormStatus
from glimlach.validation import ValidationResult

logger = logging.getLogger(__name__)

StateListener = Callable[[FormState], None]


def initialize(schema: FormSchema) -> FormState:
    """Start a form session at step 0 with every field at its default value.

    Examples:
        >>> from glimlach.forms import get_schema
        >>> state = initialize(get_schema("rsvp"))
        >>> state.values["guardianName"], state.values["consentRODO"]
        ('', False)
    """
    return FormState(schema=schema, values=schema.defaults())


def _ensure_unlocked(state: FormState, action: str) -> None:
    if state.status in LOCKED_STATUSES:
        raise InvalidStateTransitionError(
            current_state=state.status,
            target_state=FormStatus.EDITING,
            message=(
                f"Cannot {action}: form '{state.form_id}' is {state.status.value} "
                f"and its values are locked"
            ),
        )


def _ensure_editing(state: FormState, action: str) -> None:
    if state.status is not FormStatus.EDITING:
        raise InvalidStateTransitionError(
            current_state=state.status,
            target_state=FormStatus.EDITING,
            message=f"Cannot {action}: form '{state.form_id}' is {state.status.value}, not editing",
        )


def _back_to_editing(state: FormState, **changes: Any) -> FormState:
    # A failed form returns to editing as soon as the user touches it again.
    if state.status is FormStatus.FAILED:
        return state.with_status(FormStatus.EDITING, **changes)
    return replace(state, **changes)


def set_field_value(state: FormState, field_id: str, value: Any) -> FormState:
    """Return a state with one field changed.

    Plain ``set`` values for multi-select fields are converted to ``frozenset``.

    Raises:
        UnknownFieldError: If ``field_id`` is not declared in the schema
        InvalidFieldValueError: If ``value`` does not match the field's kind
        InvalidStateTransitionError: If the form is submitting or submitted
    """
    state.schema.get_field(field_id)
    _ensure_unlocked(state, f"set field '{field_id}'")

    if isinstance(value, set):
        value = frozenset(value)
    errors = state.schema.validation.check_field(field_id, value)
    if errors:
        raise InvalidFieldValueError(field_id, errors)

    values = dict(state.values)
    values[field_id] = value
    return _back_to_editing(state, values=values)


def validate_step(state: FormState, step_index: int) -> ValidationResult:
    """Check the required fields of one step and report what is missing.

    Raises:
        StepIndexError: If ``step_index`` is out of range
    """
    return state.schema.validation.validate_step(state.values, step_index)


def is_step_valid(state: FormState, step_index: int) -> bool:
    """True iff every required field of ``steps[step_index]`` is present.

    Only the given step is considered; other steps never affect the answer.
    """
    return validate_step(state, step_index).is_valid


def can_advance(state: FormState) -> bool:
    """Whether a "next" control should be enabled."""
    return (
        state.status is FormStatus.EDITING
        and not state.is_last_step
        and is_step_valid(state, state.current_step_index)
    )


def can_submit(state: FormState) -> bool:
    """Whether a "submit" control should be enabled."""
    return (
        state.status in (FormStatus.EDITING, FormStatus.FAILED)
        and state.schema.validation.first_invalid_step(state.values) is None
    )


def advance(state: FormState) -> FormState:
    """Move to the next step.

    Raises:
        InvalidStateTransitionError: If the form is not editing
        StepNotValidError: If the current step has missing required fields
        AtLastStepError: If the form is already at its final step
    """
    _ensure_editing(state, "advance")
    result = validate_step(state, state.current_step_index)
    if not result.is_valid:
        raise StepNotValidError(result.step_id, result.step_index, result.missing_fields)
    if state.is_last_step:
        raise AtLastStepError(state.current_step_index)
    return replace(state, current_step_index=state.current_step_index + 1)


def retreat(state: FormState) -> FormState:
    """Move to the previous step without validating anything.

    Raises:
        AtFirstStepError: If the form is already at step 0
        InvalidStateTransitionError: If the form is submitting or submitted
    """
    _ensure_unlocked(state, "retreat")
    if state.current_step_index == 0:
        raise AtFirstStepError()
    return _back_to_editing(state, current_step_index=state.current_step_index - 1)


def go_to_step(state: FormState, step_index: int) -> FormState:
    """Jump to any step, e.g. from a clickable progress bar.

    Jumping backwards behaves like ``retreat`` and is never validated. Jumping
    forwards behaves like repeated ``advance``: every step before the target
    must be valid.

    Raises:
        StepIndexError: If ``step_index`` is out of range
        StepNotValidError: If a step before the target is invalid
        InvalidStateTransitionError: If the form is locked, or not editing
            for a forward jump
    """
    if not 0 <= step_index < state.schema.step_count:
        raise StepIndexError(step_index, state.schema.step_count)
    if step_index == state.current_step_index:
        return state
    if step_index < state.current_step_index:
        _ensure_unlocked(state, "go back")
        return _back_to_editing(state, current_step_index=step_index)

    _ensure_editing(state, "go forward")
    for index in range(state.current_step_index, step_index):
        result = validate_step(state, index)
        if not result.is_valid:
            raise StepNotValidError(result.step_id, result.step_index, result.missing_fields)
    return replace(state, current_step_index=step_index)


def build_payload(state: FormState) -> SubmissionPayload:
    """Snapshot the values for submission once every step is complete.

    Raises:
        InvalidStateTransitionError: If the form is submitting or submitted
        IncompleteFormError: Naming the first invalid step, if any
    """
    _ensure_unlocked(state, "build a payload")
    invalid = state.schema.validation.first_invalid_step(state.values)
    if invalid is not None:
        raise IncompleteFormError(invalid.step_id, invalid.step_index, invalid.errors)
    return SubmissionPayload(form_id=state.form_id, values=state.values)


async def submit(
    state: FormState,
    relay: Relay,
    on_change: Optional[StateListener] = None,
) -> FormState:
    """Submit the form through ``relay`` and return the resulting state.

    - ``submitting``/``submitted`` input: returned unchanged, relay not called.
    - incomplete form: ``failed`` with the IncompleteFormError message.
    - otherwise the state moves to ``submitting`` (reported to ``on_change``
      before the relay is awaited), then to ``submitted`` or ``failed``.

    The relay is untrusted: an exception from it is logged and becomes a
    ``failed`` state with the generic reason.
    """
    if state.status in LOCKED_STATUSES:
        logger.debug(f"Ignoring submit for form '{state.form_id}' while {state.status.value}")
        return state

    try:
        payload = build_payload(state)
    except IncompleteFormError as exc:
        logger.info(
            f"Form '{state.form_id}' incomplete at step '{exc.step_id}': "
            f"{', '.join(exc.missing_fields)}"
        )
        return state.with_status(FormStatus.FAILED, failure_reason=str(exc))

    submitting = state.with_status(FormStatus.SUBMITTING)
    if on_change is not None:
        on_change(submitting)

    try:
        result = await relay.send(payload)
    except Exception:
        logger.exception(f"Relay raised while submitting form '{state.form_id}'")
        result = RelayResult.failure()

    if not isinstance(result, RelayResult):
        logger.error(f"Relay returned {type(result).__name__} while submitting form '{state.form_id}'")
        result = RelayResult.failure()

    if result.ok:
        logger.info(f"Form '{state.form_id}' submitted")
        return submitting.with_status(FormStatus.SUBMITTED, response=dict(result.data or {}))

    reason = result.reason or GENERIC_FAILURE_REASON
    logger.warning(f"Form '{state.form_id}' submission failed: {reason}")
    return submitting.with_status(FormStatus.FAILED, failure_reason=reason)


__all__ = [
    "initialize",
    "set_field_value",
    "validate_step",
    "is_step_valid",
    "can_advance",
    "can_submit",
    "advance",
    "retreat",
    "go_to_step",
    "build_payload",
    "submit",
]
