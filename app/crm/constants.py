"""
Central constants for the CRM console.
"""
from __future__ import annotations

# Business-object categories that can carry custom fields (value, label).
ENTITY_TYPES = (
    ("customer", "Customer"),
    ("quote", "Quote"),
    ("project", "Project"),
    ("invoice", "Invoice"),
    ("product", "Product"),
)
ENTITY_TYPE_KEYS = frozenset(key for key, _ in ENTITY_TYPES)

# Custom field types (value, label).
FIELD_TYPES = (
    ("text", "Text Input"),
    ("textarea", "Text Area"),
    ("number", "Number"),
    ("date", "Date"),
    ("checkbox", "Checkbox"),
    ("dropdown", "Dropdown"),
)
FIELD_TYPE_KEYS = frozenset(key for key, _ in FIELD_TYPES)

FIELD_NAME_PATTERN = r"^[A-Za-z0-9_]+$"

DEFAULT_GENERAL = {
    "company_name": "CRM System",
    "currency": "USD",
    "date_format": "MM/DD/YYYY",
}

DEFAULT_THEME = {
    "primary": "#4a6cf7",
    "secondary": "#6c757d",
    "sidebar": "#2a3042",
}

DATE_FORMATS = ("MM/DD/YYYY", "DD/MM/YYYY", "YYYY-MM-DD")

# Pages whose widget layout can be arranged in the Page Builder.
LAYOUT_PAGES = ("dashboard", "customers", "quotes", "projects")

# Widgets shown on a page that has never been configured.
DEFAULT_PAGE_COMPONENTS = {
    "dashboard": ("CustomerStats", "RecentQuotes", "SalesChart"),
}
