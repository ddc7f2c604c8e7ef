"""Event system for form sessions.

A FormController emits a typed FormEvent for every operation that changes
its state: initialization, field edits, step navigation and each phase of a
submission. UI bindings subscribe to re-render; an audit sink can subscribe
to everything and append ``to_jsonl()`` lines to a log.

Event payloads never contain field values, only ids and statuses, since
form values carry personal data.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional
import json
import logging

from dateutil.parser import isoparse

from .types import EventType, FormStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FormEvent:
    """A single event in a form session.

    Attributes:
        event_id: Unique event identifier (e.g., "evt_3f2a...")
        type: Event type from EventType enum
        form_id: Id of the form's schema
        ts: UTC timestamp when the event occurred
        state: Form status after this event
        step_index: Current step index after this event
        payload: Optional event-specific data (field id, step move, reason)

    Examples:
        >>> from datetime import datetime, timezone
        >>> event = FormEvent(
        ...     event_id="evt_001",
        ...     type=EventType.STEP_ADVANCED,
        ...     form_id="rsvp",
        ...     ts=datetime(2024, 7, 20, 12, 0, tzinfo=timezone.utc),
        ...     state=FormStatus.EDITING,
        ...     step_index=1,
        ...     payload={"from_step": 0, "to_step": 1},
        ... )
        >>> event.to_dict()["type"]
        'step.advanced'
    """
    event_id: str
    type: EventType
    form_id: str
    ts: datetime
    state: FormStatus
    step_index: int = 0
    payload: Optional[Dict[str, Any]] = None

    def __post_init__(self):
        """Normalize string enum values."""
        if isinstance(self.state, str) and not isinstance(self.state, FormStatus):
            object.__setattr__(self, "state", FormStatus(self.state))
        if isinstance(self.type, str) and not isinstance(self.type, EventType):
            object.__setattr__(self, "type", EventType(self.type))

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary for serialization.

        Timestamp is formatted as ISO 8601 string.
        """
        result: Dict[str, Any] = {
            "eventId": self.event_id,
            "type": self.type.value,
            "formId": self.form_id,
            "ts": self.ts.isoformat(),
            "state": self.state.value,
            "stepIndex": self.step_index,
        }
        if self.payload is not None:
            result["payload"] = self.payload
        return result

    def to_jsonl(self) -> str:
        """Convert event to a single-line JSON string."""
        return json.dumps(self.to_dict(), separators=(',', ':'), ensure_ascii=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FormEvent":
        """Create FormEvent from dictionary (camelCase keys)."""
        return cls(
            event_id=data["eventId"],
            type=EventType(data["type"]),
            form_id=data["formId"],
            ts=isoparse(data["ts"]),
            state=FormStatus(data["state"]),
            step_index=data.get("stepIndex", 0),
            payload=data.get("payload"),
        )


EventListener = Callable[[FormEvent], None]
"""Type alias for event listener callbacks.

Listeners are called synchronously when events are emitted.
"""


class EventEmitter:
    """Dispatches FormEvents to registered listeners.

    - Type-specific subscriptions and wildcard subscriptions
    - Synchronous dispatch in registration order (typed first, then wildcard)
    - A listener that raises is logged and does not affect other listeners

    Examples:
        >>> emitter = EventEmitter()
        >>> seen = []
        >>> emitter.on(EventType.FIELD_UPDATED, seen.append)
        >>> emitter.listener_count()
        1
    """

    def __init__(self):
        self._listeners: Dict[EventType, List[EventListener]] = {}
        self._any_listeners: List[EventListener] = []

    def on(self, event_type: EventType, listener: EventListener) -> None:
        """Subscribe to a specific event type."""
        self._listeners.setdefault(event_type, []).append(listener)

    def on_any(self, listener: EventListener) -> None:
        """Subscribe to all event types."""
        self._any_listeners.append(listener)

    def off(self, event_type: EventType, listener: EventListener) -> None:
        """Unsubscribe from a specific event type. Unknown listeners are ignored."""
        listeners = self._listeners.get(event_type, [])
        if listener in listeners:
            listeners.remove(listener)

    def off_any(self, listener: EventListener) -> None:
        """Unsubscribe a wildcard listener. Unknown listeners are ignored."""
        if listener in self._any_listeners:
            self._any_listeners.remove(listener)

    def emit(self, event: FormEvent) -> None:
        """Dispatch an event to all registered listeners."""
        for listener in [*self._listeners.get(event.type, []), *self._any_listeners]:
            try:
                listener(event)
            except Exception:
                logger.exception(
                    f"Listener {listener!r} failed on {event.type.value} for form '{event.form_id}'"
                )

    def clear(self) -> None:
        """Remove all event listeners."""
        self._listeners.clear()
        self._any_listeners.clear()

    def listener_count(self, event_type: Optional[EventType] = None) -> int:
        """Count listeners for one type, or all listeners (including wildcard) if None."""
        if event_type is not None:
            return len(self._listeners.get(event_type, []))
        return len(self._any_listeners) + sum(len(v) for v in self._listeners.values())


__all__ = [
    "FormEvent",
    "EventListener",
    "EventEmitter",
]
