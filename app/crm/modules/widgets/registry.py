from __future__ import annotations

import importlib
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from flask import Flask, current_app, render_template
from markupsafe import Markup

from app.crm.modules.configuration.document import Configuration

logger = logging.getLogger(__name__)

_EXTENSION_KEY = "widget_registry"


@dataclass(frozen=True)
class WidgetContext:
    """What a widget may use while rendering: the page, config snapshot, and API client."""

    page_name: str
    config: Configuration
    api: Any


class Widget:
    key: str = ""
    template: str = ""

    def get_context(self, ctx: WidgetContext) -> dict[str, Any]:
        return {}

    def render(self, ctx: WidgetContext) -> Markup:
        return Markup(render_template(self.template, widget=self, **self.get_context(ctx)))


@dataclass(frozen=True)
class WidgetSpec:
    key: str
    name: str
    description: str
    icon: str
    # "package.module:ClassName", imported on first resolve
    target: str | None = None
    factory: Callable[[], Widget] | None = None


@dataclass(frozen=True)
class UnregisteredWidget:
    key: str

    @property
    def message(self) -> str:
        return f"Component '{self.key}' not found in registry"


class WidgetRegistry:
    def __init__(self) -> None:
        self._specs: dict[str, WidgetSpec] = {}
        self._loaded: dict[str, Callable[[], Widget]] = {}

    def register(self, spec: WidgetSpec) -> None:
        if spec.target is None and spec.factory is None:
            raise ValueError(f"Widget {spec.key!r} needs a target or a factory")
        if spec.key in self._specs:
            raise ValueError(f"Widget {spec.key!r} is already registered")
        self._specs[spec.key] = spec

    def keys(self) -> list[str]:
        return list(self._specs)

    def specs(self) -> list[WidgetSpec]:
        return list(self._specs.values())

    def __contains__(self, key: object) -> bool:
        return key in self._specs

    def _factory(self, spec: WidgetSpec) -> Callable[[], Widget]:
        if spec.factory is not None:
            return spec.factory
        cached = self._loaded.get(spec.key)
        if cached is None:
            module_name, _, attr = (spec.target or "").partition(":")
            cached = getattr(importlib.import_module(module_name), attr)
            self._loaded[spec.key] = cached
            logger.debug("Loaded widget %s from %s", spec.key, spec.target)
        return cached

    def resolve(self, key: str) -> Widget | UnregisteredWidget:
        """
        A fresh widget instance for `key`, or UnregisteredWidget when the
        identifier is unknown. Import errors propagate to the caller.
        """
        spec = self._specs.get(key)
        if spec is None:
            return UnregisteredWidget(key)
        widget = self._factory(spec)()
        widget.key = key
        return widget


_DASHBOARD = "app.crm.modules.widgets.dashboard"

DASHBOARD_WIDGETS = (
    WidgetSpec("CustomerStats", "Customer Statistics", "Displays key customer metrics", "users", f"{_DASHBOARD}:CustomerStats"),
    WidgetSpec("RecentQuotes", "Recent Quotes", "Shows a list of recent quotes", "file-text", f"{_DASHBOARD}:RecentQuotes"),
    WidgetSpec("SalesChart", "Sales Chart", "Visualizes sales performance", "bar-chart", f"{_DASHBOARD}:SalesChart"),
    WidgetSpec("QuickActions", "Quick Actions", "Shows common actions for easy access", "zap", f"{_DASHBOARD}:QuickActions"),
    WidgetSpec("UpcomingTasks", "Upcoming Tasks", "Lists tasks due soon", "check-square", f"{_DASHBOARD}:UpcomingTasks"),
    WidgetSpec("RecentActivity", "Recent Activity", "Shows recent system activity", "activity", f"{_DASHBOARD}:RecentActivity"),
)


def default_registry() -> WidgetRegistry:
    registry = WidgetRegistry()
    for spec in DASHBOARD_WIDGETS:
        registry.register(spec)
    return registry


def init_registry(app: Flask, registry: WidgetRegistry | None = None) -> WidgetRegistry:
    registry = registry or default_registry()
    app.extensions[_EXTENSION_KEY] = registry
    return registry


def get_registry(app: Flask | None = None) -> WidgetRegistry:
    return (app or current_app).extensions[_EXTENSION_KEY]
