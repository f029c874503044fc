"""
Persistence backends for the configuration store.

A backend only moves data; it never validates and never holds the live
document. The store decides what to write and swaps its snapshot after the
backend call returns.
"""
from __future__ import annotations

import copy
import uuid
from datetime import datetime
from types import MappingProxyType
from typing import Protocol

from sqlalchemy import func
from sqlalchemy.orm import sessionmaker

from app.crm.db import transaction
from app.crm.modules.configuration.document import (
    Configuration,
    CustomFieldDefinition,
    GeneralSettings,
    PageLayout,
    Theme,
)
from app.crm.modules.configuration.models import ConfigSection, CustomFieldRow, PageLayoutRow


class ConfigurationBackend(Protocol):
    """
    `version()` returns a stamp that changes on every write, including writes
    made by other processes sharing the same storage.
    """

    def load(self) -> Configuration: ...

    def save_section(self, key: str, value: dict) -> None: ...

    def insert_custom_field(self, definition: CustomFieldDefinition) -> None: ...

    def update_custom_field(self, definition: CustomFieldDefinition) -> None: ...

    def delete_custom_field(self, field_id: str) -> None: ...

    def save_layout(self, page_name: str, layout: PageLayout) -> None: ...

    def version(self) -> str | int | None: ...

    def close(self) -> None: ...


# config_sections row whose value changes on every write; not a settings section.
REVISION_KEY = "revision"


def _bump_revision(s) -> None:
    row = s.get(ConfigSection, REVISION_KEY)
    if row is None:
        row = ConfigSection(key=REVISION_KEY)
        s.add(row)
    row.value = {"token": uuid.uuid4().hex}
    row.updated_at = datetime.utcnow()


def _row_to_definition(row: CustomFieldRow) -> CustomFieldDefinition:
    return CustomFieldDefinition(
        id=row.id,
        entity=row.entity,
        name=row.name,
        label=row.label,
        type=row.field_type,
        required=bool(row.required),
        options=tuple(row.options or ()),
        placeholder=row.placeholder,
        default_value=row.default_value,
    )


class SqlConfigurationBackend:
    """Stores the configuration document in three SQLAlchemy tables."""

    def __init__(self, sm: sessionmaker):
        self._sm = sm

    def load(self) -> Configuration:
        with transaction(self._sm) as s:
            sections = {row.key: row.value for row in s.query(ConfigSection).all()}
            fields = s.query(CustomFieldRow).order_by(CustomFieldRow.position.asc()).all()
            layouts = s.query(PageLayoutRow).all()
            return Configuration(
                general=GeneralSettings.from_dict(sections.get("general")),
                theme=Theme.from_dict(sections.get("theme")),
                custom_fields=tuple(_row_to_definition(r) for r in fields),
                layout=MappingProxyType(
                    {
                        r.page_name: PageLayout.from_dict(
                            {"active_components": r.active_components, "grid_layout": r.grid_layout}
                        )
                        for r in layouts
                    }
                ),
            )

    def save_section(self, key: str, value: dict) -> None:
        with transaction(self._sm) as s:
            _bump_revision(s)
            row = s.get(ConfigSection, key)
            if row is None:
                row = ConfigSection(key=key)
                s.add(row)
            row.value = dict(value)
            row.updated_at = datetime.utcnow()

    def insert_custom_field(self, definition: CustomFieldDefinition) -> None:
        now = datetime.utcnow()
        with transaction(self._sm) as s:
            _bump_revision(s)
            last = s.query(func.max(CustomFieldRow.position)).scalar()
            s.add(
                CustomFieldRow(
                    id=definition.id,
                    position=(last or 0) + 1,
                    entity=definition.entity,
                    name=definition.name,
                    label=definition.label,
                    field_type=definition.type,
                    required=definition.required,
                    options=list(definition.options),
                    placeholder=definition.placeholder,
                    default_value=definition.default_value,
                    created_at=now,
                    updated_at=now,
                )
            )

    def update_custom_field(self, definition: CustomFieldDefinition) -> None:
        with transaction(self._sm) as s:
            _bump_revision(s)
            row = s.get(CustomFieldRow, definition.id)
            if row is None:
                raise LookupError(f"custom field {definition.id} vanished from storage")
            row.entity = definition.entity
            row.name = definition.name
            row.label = definition.label
            row.field_type = definition.type
            row.required = definition.required
            row.options = list(definition.options)
            row.placeholder = definition.placeholder
            row.default_value = definition.default_value
            row.updated_at = datetime.utcnow()

    def delete_custom_field(self, field_id: str) -> None:
        with transaction(self._sm) as s:
            _bump_revision(s)
            row = s.get(CustomFieldRow, field_id)
            if row is not None:
                s.delete(row)

    def save_layout(self, page_name: str, layout: PageLayout) -> None:
        with transaction(self._sm) as s:
            _bump_revision(s)
            row = s.get(PageLayoutRow, page_name)
            if row is None:
                row = PageLayoutRow(page_name=page_name)
                s.add(row)
            row.active_components = list(layout.active_components)
            row.grid_layout = dict(layout.grid_layout)
            row.updated_at = datetime.utcnow()

    def version(self) -> str | None:
        with transaction(self._sm) as s:
            row = s.get(ConfigSection, REVISION_KEY)
            return (row.value or {}).get("token") if row is not None else None

    def close(self) -> None:
        pass


class InMemoryConfigurationBackend:
    """
    Keeps the persisted document in process memory.
    Used for isolated stores in tests and for running without a database.
    """

    def __init__(self, initial: Configuration | None = None):
        self._doc = initial or Configuration()
        self.closed = False
        self._version = 0

    def load(self) -> Configuration:
        return self._doc

    def version(self) -> int:
        return self._version

    def save_section(self, key: str, value: dict) -> None:
        if key == "general":
            self._doc = self._doc.with_general(GeneralSettings.from_dict(value))
        elif key == "theme":
            self._doc = self._doc.with_theme(Theme.from_dict(value))
        else:
            raise KeyError(key)
        self._version += 1

    def insert_custom_field(self, definition: CustomFieldDefinition) -> None:
        self._doc = self._doc.with_custom_fields(self._doc.custom_fields + (definition,))
        self._version += 1

    def update_custom_field(self, definition: CustomFieldDefinition) -> None:
        self._doc = self._doc.with_custom_fields(
            tuple(definition if f.id == definition.id else f for f in self._doc.custom_fields)
        )
        self._version += 1

    def delete_custom_field(self, field_id: str) -> None:
        self._doc = self._doc.with_custom_fields(tuple(f for f in self._doc.custom_fields if f.id != field_id))
        self._version += 1

    def save_layout(self, page_name: str, layout: PageLayout) -> None:
        self._doc = self._doc.with_layout(page_name, PageLayout.from_dict(copy.deepcopy(layout.to_dict())))
        self._version += 1

    def close(self) -> None:
        self.closed = True
