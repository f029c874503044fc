"""
Forms that combine an entity's standard fields with the custom fields an
administrator defined for that entity type.

The form only holds and checks a draft. Saving is left to the `on_submit`
callback supplied by the page that owns the entity.
"""
from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Mapping

from app.crm.modules.configuration.document import CustomFieldDefinition

# Field type -> HTML control used by the dynamic_form macro.
CONTROL_FOR_TYPE = {
    "text": "input",
    "textarea": "textarea",
    "number": "number",
    "date": "date",
    "checkbox": "checkbox",
    "dropdown": "select",
}


@dataclass(frozen=True)
class FieldDescriptor:
    name: str
    label: str
    type: str = "text"
    required: bool = False
    options: tuple[str, ...] = ()
    placeholder: str | None = None
    min: float | None = None
    max: float | None = None
    step: float | None = None

    @classmethod
    def from_custom_field(cls, definition: CustomFieldDefinition) -> "FieldDescriptor":
        return cls(
            name=definition.name,
            label=definition.label or definition.name,
            type=definition.type,
            required=definition.required,
            options=tuple(definition.options),
            placeholder=definition.placeholder,
        )

    @property
    def control(self) -> str:
        return CONTROL_FOR_TYPE.get(self.type, "input")


def default_for(descriptor: FieldDescriptor) -> Any:
    if descriptor.type == "checkbox":
        return False
    if descriptor.type == "number":
        return 0
    if descriptor.type == "dropdown":
        return descriptor.options[0] if descriptor.options else ""
    return ""


def is_blank(value: Any, field_type: str = "text") -> bool:
    if value is None or value is False:
        return True
    if isinstance(value, str):
        return not value.strip()
    # A required number left at its seeded 0 has not been answered.
    if field_type == "number" and isinstance(value, (int, float)) and value == 0:
        return True
    return False


def type_error(descriptor: FieldDescriptor, value: Any) -> str | None:
    """Message for a value the field type cannot hold, None when it fits."""
    if descriptor.type == "number" and isinstance(value, str) and value.strip():
        return f"{descriptor.label} must be a number"
    return None


def coerce_value(descriptor: FieldDescriptor, raw: Any) -> Any:
    """Turn a posted form value into the draft value for this field type."""
    if descriptor.type == "checkbox":
        return raw in (True, "on", "true", "1", "yes")
    if descriptor.type == "number":
        text = ("" if raw is None else str(raw)).strip()
        if not text:
            return ""
        try:
            return int(text)
        except ValueError:
            try:
                return float(text)
            except ValueError:
                # Kept as typed so the form can redisplay it next to the error.
                return text
    return "" if raw is None else raw


class DynamicForm:
    def __init__(
        self,
        entity_type: str,
        standard_fields: list[FieldDescriptor] | tuple[FieldDescriptor, ...],
        initial_values: Mapping[str, Any] | None = None,
        custom_fields: tuple[CustomFieldDefinition, ...] | list[CustomFieldDefinition] = (),
    ):
        self.entity_type = entity_type
        self.standard_fields = list(standard_fields)
        self.custom_fields = [
            FieldDescriptor.from_custom_field(d) for d in custom_fields if d.matches_entity(entity_type)
        ]
        self.values: dict[str, Any] = dict(initial_values or {})
        self.errors: dict[str, str] = {}
        for descriptor in self.custom_fields:
            if descriptor.name not in self.values:
                self.values[descriptor.name] = default_for(descriptor)

    @property
    def fields(self) -> list[FieldDescriptor]:
        return self.standard_fields + self.custom_fields

    def field(self, name: str) -> FieldDescriptor | None:
        for f in self.fields:
            if f.name == name:
                return f
        return None

    def change(self, name: str, value: Any) -> None:
        self.values[name] = value
        self.errors.pop(name, None)

    def load_form(self, form: Mapping[str, Any]) -> None:
        """
        Apply a posted HTML form. Unchecked checkboxes are absent from the
        post, so every checkbox field is set explicitly.
        """
        for descriptor in self.fields:
            if descriptor.type != "checkbox" and descriptor.name not in form:
                continue
            value = coerce_value(descriptor, form.get(descriptor.name))
            self.change(descriptor.name, value)
            problem = type_error(descriptor, value)
            if problem:
                self.errors[descriptor.name] = problem

    def validate(self) -> bool:
        errors: dict[str, str] = {}
        for descriptor in self.fields:
            value = self.values.get(descriptor.name)
            if descriptor.required and is_blank(value, descriptor.type):
                errors[descriptor.name] = f"{descriptor.label} is required"
                continue
            problem = type_error(descriptor, value)
            if problem:
                errors[descriptor.name] = problem
        self.errors = errors
        return not errors

    def custom_values(self) -> dict[str, Any]:
        return {f.name: self.values.get(f.name) for f in self.custom_fields}

    def submit(self, on_submit: Callable[[dict[str, Any]], Any]) -> bool:
        if not self.validate():
            return False
        on_submit(dict(self.values))
        return True
