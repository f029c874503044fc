from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from markupsafe import Markup

from app.crm.constants import DEFAULT_PAGE_COMPONENTS
from app.crm.modules.configuration.document import Configuration
from app.crm.modules.widgets.registry import UnregisteredWidget, WidgetContext, WidgetRegistry

logger = logging.getLogger(__name__)

MOUNTED = "mounted"
MISSING = "missing"
FAILED = "failed"

NO_COMPONENTS_MESSAGE = "No components configured for this page."
DASHBOARD_HINT = "You can add components using the Page Builder in the Customization settings."


@dataclass(frozen=True)
class Slot:
    key: str
    status: str
    html: Markup | None = None
    message: str | None = None

    @property
    def mounted(self) -> bool:
        return self.status == MOUNTED


@dataclass(frozen=True)
class RenderedPage:
    page_name: str
    slots: tuple[Slot, ...]

    @property
    def is_empty(self) -> bool:
        return not self.slots

    @property
    def empty_message(self) -> str | None:
        return NO_COMPONENTS_MESSAGE if self.is_empty else None

    @property
    def hint(self) -> str | None:
        if self.is_empty and self.page_name == "dashboard":
            return DASHBOARD_HINT
        return None

    @property
    def mounted(self) -> list[Slot]:
        return [s for s in self.slots if s.mounted]


def components_for_page(config: Configuration, page_name: str) -> list[str]:
    layout = config.layout_for(page_name)
    if layout is None:
        return list(DEFAULT_PAGE_COMPONENTS.get(page_name, ()))
    return list(layout.active_components)


def render_slot(registry: WidgetRegistry, key: str, ctx: WidgetContext) -> Slot:
    """Render one widget. Nothing raised here escapes the slot."""
    try:
        widget = registry.resolve(key)
        if isinstance(widget, UnregisteredWidget):
            return Slot(key, MISSING, message=widget.message)
        return Slot(key, MOUNTED, html=widget.render(ctx))
    except Exception as e:
        logger.exception("Widget %s failed on page %s", key, ctx.page_name)
        return Slot(key, FAILED, message=f"Component '{key}' failed to load: {e}")


def render_page(page_name: str, *, config: Configuration, registry: WidgetRegistry, api: Any) -> RenderedPage:
    ctx = WidgetContext(page_name=page_name, config=config, api=api)
    keys = components_for_page(config, page_name)
    return RenderedPage(page_name, tuple(render_slot(registry, key, ctx) for key in keys))
