from __future__ import annotations

from dataclasses import dataclass, field, fields as dc_fields
from typing import Any

from app.crm.errors import ValidationError, errors_by_field
from app.crm.modules.configuration.document import CustomFieldDefinition
from app.crm.modules.custom_fields.service import FieldDraft

CLOSED = "closed"
ADDING = "adding"
EDITING = "editing"


@dataclass
class FieldEditor:
    """
    State of the add/edit panel on the custom fields screen.

    Only one form is ever open: the add form, or the edit form of a single
    field. Opening one closes the other; cancelling clears draft and errors.
    """

    mode: str = CLOSED
    editing_id: str | None = None
    draft: FieldDraft = field(default_factory=FieldDraft)
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def show_add_form(self) -> bool:
        return self.mode == ADDING

    @property
    def is_open(self) -> bool:
        return self.mode != CLOSED

    def is_editing(self, field_id: str | None) -> bool:
        return self.mode == EDITING and self.editing_id == field_id

    def open_add(self) -> None:
        self.mode = ADDING
        self.editing_id = None
        self.draft = FieldDraft()
        self.errors = {}

    def open_edit(self, definition: CustomFieldDefinition) -> None:
        self.mode = EDITING
        self.editing_id = definition.id
        self.draft = FieldDraft.from_definition(definition)
        self.errors = {}

    def cancel(self) -> None:
        self.mode = CLOSED
        self.editing_id = None
        self.draft = FieldDraft()
        self.errors = {}

    def change(self, name: str, value: Any) -> None:
        if name not in {f.name for f in dc_fields(FieldDraft)}:
            raise KeyError(name)
        setattr(self.draft, name, value)
        self.errors.pop(name, None)

    def fail(self, errors: list[ValidationError]) -> None:
        self.errors = errors_by_field(errors)
