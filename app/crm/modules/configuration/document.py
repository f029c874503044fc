from __future__ import annotations

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Mapping

from app.crm.constants import DEFAULT_GENERAL, DEFAULT_THEME


@dataclass(frozen=True)
class GeneralSettings:
    company_name: str = DEFAULT_GENERAL["company_name"]
    currency: str = DEFAULT_GENERAL["currency"]
    date_format: str = DEFAULT_GENERAL["date_format"]

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "GeneralSettings":
        merged = {**DEFAULT_GENERAL, **{k: v for k, v in (data or {}).items() if k in DEFAULT_GENERAL}}
        return cls(**merged)

    def to_dict(self) -> dict[str, str]:
        return {"company_name": self.company_name, "currency": self.currency, "date_format": self.date_format}


@dataclass(frozen=True)
class Theme:
    primary: str = DEFAULT_THEME["primary"]
    secondary: str = DEFAULT_THEME["secondary"]
    sidebar: str = DEFAULT_THEME["sidebar"]

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "Theme":
        merged = {**DEFAULT_THEME, **{k: v for k, v in (data or {}).items() if k in DEFAULT_THEME}}
        return cls(**merged)

    def to_dict(self) -> dict[str, str]:
        return {"primary": self.primary, "secondary": self.secondary, "sidebar": self.sidebar}


@dataclass(frozen=True)
class CustomFieldDefinition:
    """
    A user-defined attribute attached to one entity type.

    `options` only means something for dropdown fields; it is kept empty for
    every other type.
    """

    id: str | None
    entity: str
    name: str
    label: str
    type: str = "text"
    required: bool = False
    options: tuple[str, ...] = ()
    placeholder: str | None = None
    default_value: str | None = None

    def matches_entity(self, entity: str) -> bool:
        return self.entity.lower() == (entity or "").lower()

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "entity": self.entity,
            "name": self.name,
            "label": self.label,
            "type": self.type,
            "required": self.required,
            "options": list(self.options),
            "placeholder": self.placeholder,
            "default_value": self.default_value,
        }


@dataclass(frozen=True)
class PageLayout:
    active_components: tuple[str, ...] = ()
    # Positioning data reserved for a future grid editor; carried through untouched.
    grid_layout: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "PageLayout":
        data = data or {}
        return cls(
            active_components=tuple(str(k) for k in (data.get("active_components") or ())),
            grid_layout=MappingProxyType(dict(data.get("grid_layout") or {})),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"active_components": list(self.active_components), "grid_layout": dict(self.grid_layout)}


@dataclass(frozen=True)
class Configuration:
    general: GeneralSettings = field(default_factory=GeneralSettings)
    theme: Theme = field(default_factory=Theme)
    custom_fields: tuple[CustomFieldDefinition, ...] = ()
    layout: Mapping[str, PageLayout] = field(default_factory=lambda: MappingProxyType({}))

    def custom_fields_for(self, entity: str) -> tuple[CustomFieldDefinition, ...]:
        return tuple(f for f in self.custom_fields if f.matches_entity(entity))

    def find_custom_field(self, field_id: str) -> CustomFieldDefinition | None:
        for f in self.custom_fields:
            if f.id == field_id:
                return f
        return None

    def layout_for(self, page_name: str) -> PageLayout | None:
        return self.layout.get(page_name)

    # Copy-on-write helpers used by the store; each returns a new document.

    def with_general(self, general: GeneralSettings) -> "Configuration":
        return replace(self, general=general)

    def with_theme(self, theme: Theme) -> "Configuration":
        return replace(self, theme=theme)

    def with_custom_fields(self, fields: tuple[CustomFieldDefinition, ...]) -> "Configuration":
        return replace(self, custom_fields=tuple(fields))

    def with_layout(self, page_name: str, layout: PageLayout) -> "Configuration":
        return replace(self, layout=MappingProxyType({**self.layout, page_name: layout}))

    def to_dict(self) -> dict[str, Any]:
        return {
            "general": self.general.to_dict(),
            "theme": self.theme.to_dict(),
            "custom_fields": [f.to_dict() for f in self.custom_fields],
            "layout": {name: pl.to_dict() for name, pl in self.layout.items()},
        }
