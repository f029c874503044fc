from __future__ import annotations

import re
from dataclasses import dataclass, replace
from typing import Any, Mapping

from app.crm.constants import ENTITY_TYPE_KEYS, FIELD_NAME_PATTERN, FIELD_TYPE_KEYS
from app.crm.errors import FieldNotFound, FieldValidationFailed, PersistenceError, ValidationError
from app.crm.modules.configuration.document import CustomFieldDefinition
from app.crm.modules.configuration.store import ConfigurationStore

_NAME_RE = re.compile(FIELD_NAME_PATTERN)


def parse_options(raw: str | None) -> tuple[str, ...]:
    """'A, B,, C,' -> ('A', 'B', 'C'). Blank segments are dropped."""
    return tuple(seg.strip() for seg in (raw or "").split(",") if seg.strip())


def format_options(options: tuple[str, ...] | list[str] | None) -> str:
    return ", ".join(options or ())


@dataclass
class FieldDraft:
    """
    Editable, uncommitted form state for a custom field definition.
    Options stay a comma-separated string until the draft is committed.
    """

    entity: str = ""
    name: str = ""
    label: str = ""
    type: str = "text"
    required: bool = False
    options: str = ""
    placeholder: str = ""
    default_value: str = ""

    @classmethod
    def from_form(cls, form: Mapping[str, Any]) -> "FieldDraft":
        required = form.get("required")
        return cls(
            entity=(form.get("entity") or "").strip(),
            name=(form.get("name") or "").strip(),
            label=(form.get("label") or "").strip(),
            type=(form.get("type") or "text").strip(),
            required=required in (True, "on", "true", "1", "yes"),
            options=form.get("options") or "",
            placeholder=form.get("placeholder") or "",
            default_value=form.get("default_value") or "",
        )

    @classmethod
    def from_definition(cls, definition: CustomFieldDefinition) -> "FieldDraft":
        return cls(
            entity=definition.entity,
            name=definition.name,
            label=definition.label,
            type=definition.type,
            required=definition.required,
            options=format_options(definition.options),
            placeholder=definition.placeholder or "",
            default_value=definition.default_value or "",
        )

    def to_definition(self, field_id: str | None = None) -> CustomFieldDefinition:
        return CustomFieldDefinition(
            id=field_id,
            entity=self.entity.strip().lower(),
            name=self.name.strip(),
            label=self.label.strip(),
            type=self.type,
            required=bool(self.required),
            options=parse_options(self.options) if self.type == "dropdown" else (),
            placeholder=self.placeholder.strip() or None,
            default_value=self.default_value.strip() or None,
        )


def validate_field_draft(
    draft: FieldDraft,
    *,
    existing: tuple[CustomFieldDefinition, ...] = (),
    editing_id: str | None = None,
) -> list[ValidationError]:
    """
    Collect every problem with the draft; nothing short-circuits.
    `existing` enables the per-entity name uniqueness check.
    """
    errs: list[ValidationError] = []
    entity = draft.entity.strip().lower()
    if not entity:
        errs.append(ValidationError("entity", "Entity is required"))
    elif entity not in ENTITY_TYPE_KEYS:
        errs.append(ValidationError("entity", f"Unknown entity type '{draft.entity}'"))

    if draft.type not in FIELD_TYPE_KEYS:
        errs.append(ValidationError("type", f"Unknown field type '{draft.type}'"))

    name = draft.name.strip()
    if not name:
        errs.append(ValidationError("name", "Field name is required"))
    elif not _NAME_RE.match(name):
        errs.append(ValidationError("name", "Field name can only contain letters, numbers, and underscores"))
    elif entity and any(
        f.matches_entity(entity) and f.name == name and f.id != editing_id for f in existing
    ):
        errs.append(ValidationError("name", f"A {entity} field named '{name}' already exists"))

    if not draft.label.strip():
        errs.append(ValidationError("label", "Display label is required"))

    if draft.type == "dropdown" and not parse_options(draft.options):
        errs.append(ValidationError("options", "Options are required for dropdown fields"))
    return errs


def list_custom_fields(store: ConfigurationStore, entity_filter: str | None = None) -> list[CustomFieldDefinition]:
    fields = store.config.custom_fields
    if not entity_filter or entity_filter.lower() == "all":
        return list(fields)
    return [f for f in fields if f.matches_entity(entity_filter)]


def get_custom_field(store: ConfigurationStore, field_id: str) -> CustomFieldDefinition:
    definition = store.config.find_custom_field(field_id)
    if definition is None:
        raise FieldNotFound(field_id)
    return definition


def create_custom_field(store: ConfigurationStore, draft: FieldDraft) -> CustomFieldDefinition:
    errs = validate_field_draft(draft, existing=store.config.custom_fields)
    if errs:
        raise FieldValidationFailed(errs)
    definition = draft.to_definition()
    if not store.add_custom_field(definition):
        raise PersistenceError("Failed to add custom field. Please try again.")
    for f in reversed(store.config.custom_fields):
        if f.matches_entity(definition.entity) and f.name == definition.name:
            return f
    raise PersistenceError("Custom field was saved but could not be read back.")


def update_custom_field(store: ConfigurationStore, field_id: str, draft: FieldDraft) -> CustomFieldDefinition:
    get_custom_field(store, field_id)
    errs = validate_field_draft(draft, existing=store.config.custom_fields, editing_id=field_id)
    if errs:
        raise FieldValidationFailed(errs)
    definition = draft.to_definition(field_id)
    if not store.update_custom_field(field_id, definition):
        raise PersistenceError("Failed to update custom field. Please try again.")
    return store.config.find_custom_field(field_id) or replace(definition, id=field_id)


def delete_custom_field(store: ConfigurationStore, field_id: str) -> CustomFieldDefinition:
    """
    Irreversible. Values already stored on entities are left as they are.
    Callers must have obtained explicit confirmation from the user.
    """
    definition = get_custom_field(store, field_id)
    if not store.delete_custom_field(field_id):
        raise PersistenceError("Failed to delete custom field. Please try again.")
    return definition
