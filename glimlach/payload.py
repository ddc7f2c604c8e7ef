"""Submission payload snapshots."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Dict, Mapping

from glimlach.types import FieldValue


@dataclass(frozen=True)
class SubmissionPayload:
    """Point-in-time snapshot of a form's values, handed to a relay.

    The engine creates one payload per submission attempt and does not keep
    it afterwards.

    Attributes:
        form_id: Id of the schema that produced the values
        values: Read-only copy of every field value at build time
        created_at: UTC timestamp of the snapshot

    Examples:
        >>> p = SubmissionPayload(form_id="rsvp", values={"roles": frozenset({"b", "a"})})
        >>> p.to_dict()
        {'type': 'rsvp', 'payload': {'roles': ['a', 'b']}}
    """
    form_id: str
    values: Mapping[str, FieldValue]
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc), compare=False)

    def __post_init__(self):
        object.__setattr__(self, "values", MappingProxyType(dict(self.values)))

    def json_values(self) -> Dict[str, Any]:
        """Values with multi-select sets converted to sorted lists."""
        return {
            key: sorted(value) if isinstance(value, frozenset) else value
            for key, value in self.values.items()
        }

    def to_dict(self) -> Dict[str, Any]:
        """Mail relay request body: ``{"type": form_id, "payload": values}``."""
        return {"type": self.form_id, "payload": self.json_values()}


__all__ = ["SubmissionPayload"]
