"""Declarative form schemas.

A FormSchema describes one form as an ordered sequence of steps, each step
declaring its fields and the subset of them that must be present before the
user may move past the step. Schemas are immutable and are built once at
startup; every form on the site is a FormSchema value driven through the one
engine in ``glimlach.engine``.

Usage:
    >>> from glimlach.schema import FieldDefinition, FormSchema, StepDefinition
    >>> from glimlach.types import FieldKind
    >>> schema = FormSchema(
    ...     form_id="newsletter",
    ...     steps=(
    ...         StepDefinition(
    ...             id="contact",
    ...             fields=(FieldDefinition(id="email", kind=FieldKind.EMAIL),),
    ...             required_field_ids=("email",),
    ...         ),
    ...     ),
    ... )
    >>> schema.field_ids()
    ['email']
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple

from glimlach.errors import SchemaDefinitionError, UnknownFieldError
from glimlach.types import FieldKind, FieldValue
from glimlach.validation import ValidationEngine, check_value


def default_for(kind: FieldKind) -> FieldValue:
    """Return the empty value for a field kind."""
    if kind is FieldKind.BOOLEAN:
        return False
    if kind is FieldKind.MULTI_SELECT:
        return frozenset()
    return ""


@dataclass(frozen=True)
class FieldDefinition:
    """A single input of a form.

    Attributes:
        id: Field id, unique across the whole schema
        kind: Kind of value the field holds
        default_value: Initial value; derived from the kind when omitted
        options: Allowed values for select kinds (empty means unrestricted)
        label_key: Optional translation key for the field's label
    """
    id: str
    kind: FieldKind
    default_value: Optional[FieldValue] = None
    options: Tuple[str, ...] = ()
    label_key: Optional[str] = None

    def __post_init__(self):
        if isinstance(self.kind, str) and not isinstance(self.kind, FieldKind):
            object.__setattr__(self, "kind", FieldKind(self.kind))
        object.__setattr__(self, "options", tuple(self.options))

        if self.default_value is None:
            object.__setattr__(self, "default_value", default_for(self.kind))
        elif isinstance(self.default_value, set):
            object.__setattr__(self, "default_value", frozenset(self.default_value))

        if self.options and self.kind not in (FieldKind.SINGLE_SELECT, FieldKind.MULTI_SELECT):
            raise SchemaDefinitionError(
                f"Field '{self.id}' of kind '{self.kind.value}' cannot declare options"
            )

        errors = check_value(self.id, self.kind, self.default_value, options=self.options)
        if errors:
            raise SchemaDefinitionError(
                f"Default value of field '{self.id}' does not match kind "
                f"'{self.kind.value}': {errors[0].message}"
            )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for serialization."""
        default: Any = self.default_value
        if isinstance(default, frozenset):
            default = sorted(default)
        result: Dict[str, Any] = {
            "id": self.id,
            "kind": self.kind.value,
            "defaultValue": default,
        }
        if self.options:
            result["options"] = list(self.options)
        if self.label_key is not None:
            result["labelKey"] = self.label_key
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FieldDefinition":
        """Create FieldDefinition from dict."""
        kind = FieldKind(data["kind"])
        default = data.get("defaultValue")
        if kind is FieldKind.MULTI_SELECT and isinstance(default, list):
            default = frozenset(default)
        return cls(
            id=data["id"],
            kind=kind,
            default_value=default,
            options=tuple(data.get("options", ())),
            label_key=data.get("labelKey"),
        )


@dataclass(frozen=True)
class StepDefinition:
    """One page of a multi-step form.

    Attributes:
        id: Step id, unique within the schema
        fields: Fields shown on this step
        required_field_ids: Ids of fields on this step that gate advancement
        title_key: Optional translation key for the step label
    """
    id: str
    fields: Tuple[FieldDefinition, ...] = ()
    required_field_ids: Tuple[str, ...] = ()
    title_key: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "fields", tuple(self.fields))
        object.__setattr__(self, "required_field_ids", tuple(self.required_field_ids))

        declared = {f.id for f in self.fields}
        undeclared = [fid for fid in self.required_field_ids if fid not in declared]
        if undeclared:
            raise SchemaDefinitionError(
                f"Step '{self.id}' requires undeclared fields: {', '.join(undeclared)}"
            )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for serialization."""
        result: Dict[str, Any] = {
            "id": self.id,
            "fields": [f.to_dict() for f in self.fields],
            "requiredFieldIds": list(self.required_field_ids),
        }
        if self.title_key is not None:
            result["titleKey"] = self.title_key
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StepDefinition":
        """Create StepDefinition from dict."""
        return cls(
            id=data["id"],
            fields=tuple(FieldDefinition.from_dict(f) for f in data.get("fields", ())),
            required_field_ids=tuple(data.get("requiredFieldIds", ())),
            title_key=data.get("titleKey"),
        )


@dataclass(frozen=True)
class FormSchema:
    """Static description of a multi-step form.

    Construction checks the whole schema for consistency: at least one step,
    unique step ids, and field ids unique across all steps. A ValidationEngine
    is compiled for the schema and kept alongside it.

    Attributes:
        form_id: Tag identifying the form; copied into every SubmissionPayload
        steps: Ordered steps of the form

    Raises:
        SchemaDefinitionError: If the schema is inconsistent
    """
    form_id: str
    steps: Tuple[StepDefinition, ...]
    _fields: Dict[str, FieldDefinition] = field(init=False, repr=False, compare=False)
    _validation: ValidationEngine = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "steps", tuple(self.steps))
        if not self.steps:
            raise SchemaDefinitionError(f"Form '{self.form_id}' must declare at least one step")

        step_ids = [s.id for s in self.steps]
        duplicates = sorted({sid for sid in step_ids if step_ids.count(sid) > 1})
        if duplicates:
            raise SchemaDefinitionError(
                f"Form '{self.form_id}' has duplicate step ids: {', '.join(duplicates)}"
            )

        fields: Dict[str, FieldDefinition] = {}
        for step in self.steps:
            for field_def in step.fields:
                if field_def.id in fields:
                    raise SchemaDefinitionError(
                        f"Form '{self.form_id}' declares field '{field_def.id}' more than once"
                    )
                fields[field_def.id] = field_def
        object.__setattr__(self, "_fields", fields)
        object.__setattr__(self, "_validation", ValidationEngine(self))

    @property
    def validation(self) -> ValidationEngine:
        return self._validation

    @property
    def step_count(self) -> int:
        return len(self.steps)

    def iter_fields(self) -> Iterator[FieldDefinition]:
        """Yield every field in declaration order."""
        for step in self.steps:
            yield from step.fields

    def field_ids(self) -> List[str]:
        return [f.id for f in self.iter_fields()]

    def has_field(self, field_id: str) -> bool:
        return field_id in self._fields

    def get_field(self, field_id: str) -> FieldDefinition:
        """Look up a field by id.

        Raises:
            UnknownFieldError: If the field is not declared
        """
        try:
            return self._fields[field_id]
        except KeyError:
            raise UnknownFieldError(field_id, self.form_id) from None

    def step_of(self, field_id: str) -> int:
        """Index of the step declaring ``field_id``."""
        for index, step in enumerate(self.steps):
            if any(f.id == field_id for f in step.fields):
                return index
        raise UnknownFieldError(field_id, self.form_id)

    def defaults(self) -> Dict[str, FieldValue]:
        """Mapping of every field id to its default value."""
        return {f.id: f.default_value for f in self.iter_fields()}

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for serialization."""
        return {
            "formId": self.form_id,
            "steps": [s.to_dict() for s in self.steps],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FormSchema":
        """Create FormSchema from dict (e.g., a form definition loaded from JSON)."""
        return cls(
            form_id=data["formId"],
            steps=tuple(StepDefinition.from_dict(s) for s in data["steps"]),
        )


__all__ = [
    "FieldDefinition",
    "StepDefinition",
    "FormSchema",
    "default_for",
]
