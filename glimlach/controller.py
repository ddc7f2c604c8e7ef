"""FormController: owner of one form session.

The engine functions are pure; something has to hold the current FormState,
replace it after every operation and tell the UI about it. FormController is
that owner. It is created when a form opens and dropped when the form is
closed, submitted or abandoned.

Because ``submit`` replaces the held state with a ``submitting`` state before
it awaits the relay, a second ``submit`` issued while the first is still in
flight sees ``submitting`` and returns immediately; the relay is called
exactly once. A ``reset`` during that wait starts a new session, and the late
relay result is dropped instead of replacing it.

Usage:
    >>> from glimlach.controller import FormController
    >>> from glimlach.forms import get_schema
    >>> from glimlach.relay import MailRelay
    >>> controller = FormController(get_schema("sponsor"), MailRelay("http://localhost:5000"))
    >>> controller.state.status.value
    'editing'
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from glimlach import engine
from glimlach.events import EventEmitter, FormEvent
from glimlach.relay import Relay
from glimlach.schema import FormSchema
from glimlach.state_machine import FormState
from glimlach.types import EventType, FormStatus
from glimlach.validation import ValidationResult

logger = logging.getLogger(__name__)


class FormController:
    """Holds and advances the FormState of a single form session.

    Attributes:
        schema: The form being presented
        relay: Where the finished payload is sent
        emitter: Receives a FormEvent after every state change
    """

    def __init__(
        self,
        schema: FormSchema,
        relay: Relay,
        emitter: Optional[EventEmitter] = None,
    ):
        self.schema = schema
        self.relay = relay
        self.emitter = emitter or EventEmitter()
        self._state = engine.initialize(schema)
        self._session = 0
        self._emit(EventType.FORM_INITIALIZED)

    @property
    def state(self) -> FormState:
        return self._state

    @property
    def values(self):
        return self._state.values

    def _emit(self, event_type: EventType, payload: Optional[Dict[str, Any]] = None) -> None:
        event = FormEvent(
            event_id=f"evt_{uuid.uuid4().hex[:16]}",
            type=event_type,
            form_id=self.schema.form_id,
            ts=datetime.now(timezone.utc),
            state=self._state.status,
            step_index=self._state.current_step_index,
            payload=payload,
        )
        self.emitter.emit(event)

    def set_field(self, field_id: str, value: Any) -> FormState:
        """Set one field; see ``engine.set_field_value``."""
        self._state = engine.set_field_value(self._state, field_id, value)
        self._emit(EventType.FIELD_UPDATED, {"field": field_id})
        return self._state

    def validate_current_step(self) -> ValidationResult:
        return engine.validate_step(self._state, self._state.current_step_index)

    def can_advance(self) -> bool:
        return engine.can_advance(self._state)

    def can_retreat(self) -> bool:
        return self._state.current_step_index > 0 and not self._state.is_locked

    def can_submit(self) -> bool:
        return engine.can_submit(self._state)

    def next_step(self) -> FormState:
        """Advance one step; see ``engine.advance``."""
        previous = self._state.current_step_index
        self._state = engine.advance(self._state)
        self._emit(EventType.STEP_ADVANCED, {"from_step": previous, "to_step": self._state.current_step_index})
        return self._state

    def previous_step(self) -> FormState:
        """Go back one step; see ``engine.retreat``."""
        previous = self._state.current_step_index
        self._state = engine.retreat(self._state)
        self._emit(EventType.STEP_RETREATED, {"from_step": previous, "to_step": self._state.current_step_index})
        return self._state

    def go_to_step(self, step_index: int) -> FormState:
        """Jump to a step; see ``engine.go_to_step``."""
        previous = self._state.current_step_index
        self._state = engine.go_to_step(self._state, step_index)
        if step_index > previous:
            self._emit(EventType.STEP_ADVANCED, {"from_step": previous, "to_step": step_index})
        elif step_index < previous:
            self._emit(EventType.STEP_RETREATED, {"from_step": previous, "to_step": step_index})
        return self._state

    def _on_submitting(self, state: FormState) -> None:
        self._state = state
        self._emit(EventType.SUBMISSION_STARTED)

    async def submit(self) -> FormState:
        """Submit through the relay and keep the outcome.

        Calls made while a submission is in flight, or after success, are
        no-ops returning the current state.
        """
        if self._state.is_locked:
            return self._state

        session = self._session
        outcome = await engine.submit(self._state, self.relay, on_change=self._on_submitting)
        if session != self._session:
            logger.info(f"Discarding submission result for form '{self.schema.form_id}' after reset")
            return self._state
        self._state = outcome

        if self._state.status is FormStatus.SUBMITTED:
            self._emit(EventType.SUBMISSION_SUCCEEDED)
        elif self._state.status is FormStatus.FAILED:
            self._emit(EventType.SUBMISSION_FAILED, {"reason": self._state.failure_reason})
        return self._state

    def reset(self) -> FormState:
        """Discard the session and start over from the schema defaults."""
        self._session += 1
        self._state = engine.initialize(self.schema)
        self._emit(EventType.FORM_INITIALIZED)
        return self._state


__all__ = [
    "FormController",
]
