from __future__ import annotations

import re
from typing import Any

from app.crm.constants import DATE_FORMATS
from app.crm.errors import FieldValidationFailed, PersistenceError, ValidationError
from app.crm.modules.configuration.document import GeneralSettings, Theme
from app.crm.modules.configuration.store import ConfigurationStore

_COLOR_RE = re.compile(r"^#[0-9A-Fa-f]{6}$")
_CURRENCY_RE = re.compile(r"^[A-Z]{3}$")


def validate_general_payload(payload: dict[str, Any]) -> list[ValidationError]:
    errs: list[ValidationError] = []
    if not (payload.get("company_name") or "").strip():
        errs.append(ValidationError("company_name", "Company name is required."))
    currency = (payload.get("currency") or "").strip().upper()
    if not _CURRENCY_RE.match(currency):
        errs.append(ValidationError("currency", "Currency must be a 3-letter ISO code (e.g. USD)."))
    date_format = (payload.get("date_format") or "").strip()
    if date_format not in DATE_FORMATS:
        errs.append(ValidationError("date_format", f"Date format must be one of: {', '.join(DATE_FORMATS)}"))
    return errs


def validate_theme_payload(payload: dict[str, Any]) -> list[ValidationError]:
    errs: list[ValidationError] = []
    for key in ("primary", "secondary", "sidebar"):
        value = (payload.get(key) or "").strip()
        if not _COLOR_RE.match(value):
            errs.append(ValidationError(key, f"{key.capitalize()} color must look like #4a6cf7."))
    return errs


def save_general_settings(store: ConfigurationStore, payload: dict[str, Any]) -> GeneralSettings:
    errs = validate_general_payload(payload)
    if errs:
        raise FieldValidationFailed(errs)
    general = GeneralSettings(
        company_name=payload["company_name"].strip(),
        currency=payload["currency"].strip().upper(),
        date_format=payload["date_format"].strip(),
    )
    if not store.update_general(general):
        raise PersistenceError("Failed to save general settings. Please try again.")
    return general


def save_theme(store: ConfigurationStore, payload: dict[str, Any]) -> Theme:
    errs = validate_theme_payload(payload)
    if errs:
        raise FieldValidationFailed(errs)
    theme = Theme(**{k: payload[k].strip().lower() for k in ("primary", "secondary", "sidebar")})
    if not store.update_theme(theme):
        raise PersistenceError("Failed to save theme. Please try again.")
    return theme
