from __future__ import annotations

from typing import Any

from app.crm.errors import PersistenceError, UnknownReference
from app.crm.modules.configuration.document import PageLayout
from app.crm.modules.configuration.store import ConfigurationStore

VIEWING = "viewing"
EDITING = "editing"

AVAILABLE = "available"
ACTIVE = "active"


def remove_from_list(items: list[str], key: str) -> tuple[list[str], int]:
    """Returns a copy without `key` and the position it was taken from (-1 if absent)."""
    if key not in items:
        return list(items), -1
    idx = items.index(key)
    return items[:idx] + items[idx + 1 :], idx


def insert_at(items: list[str], key: str, index: int | None = None) -> list[str]:
    """Returns a copy with `key` inserted at `index`, or appended when index is None."""
    out = list(items)
    if index is None or index >= len(out):
        out.append(key)
    else:
        out.insert(max(0, index), key)
    return out


class PageBuilder:
    """
    Working copy of one page's widget layout.

    VIEWING means the lists match what is stored; any move switches to
    EDITING until the layout is saved or reset.
    """

    def __init__(self, page_name: str, stored: PageLayout | None, registry_keys: list[str] | tuple[str, ...]):
        self.page_name = page_name
        self.registry_keys = list(registry_keys)
        self._load(stored or PageLayout())

    def _load(self, layout: PageLayout) -> None:
        self.grid_layout = dict(layout.grid_layout)
        self.active = list(layout.active_components)
        self.available = [k for k in self.registry_keys if k not in self.active]
        self.state = VIEWING

    @property
    def is_modified(self) -> bool:
        return self.state == EDITING

    def _list(self, name: str) -> list[str]:
        if name == AVAILABLE:
            return self.available
        if name == ACTIVE:
            return self.active
        raise ValueError(f"Unknown list {name!r}")

    def _source_of(self, key: str) -> str:
        if key in self.active:
            return ACTIVE
        if key in self.available:
            return AVAILABLE
        raise UnknownReference(f"Widget {key!r} is not on this page builder.")

    def move(self, key: str, to_list: str, index: int | None = None) -> bool:
        """
        Move `key` into `to_list` at `index` (end when None).
        Returns False when the move changes nothing.
        """
        from_list = self._source_of(key)
        self._list(to_list)
        if from_list == to_list:
            current = self._list(from_list).index(key)
            if index is None and current == len(self._list(from_list)) - 1:
                return False
            if index == current:
                return False

        source, _ = remove_from_list(self._list(from_list), key)
        if from_list == AVAILABLE:
            self.available = source
        else:
            self.active = source

        if to_list == AVAILABLE:
            # Removed widgets always go to the end of the palette; unregistered ids just disappear.
            if key in self.registry_keys:
                self.available = insert_at(self.available, key)
        else:
            self.active = insert_at(self.active, key, index)
        self.state = EDITING
        return True

    def add(self, key: str, index: int | None = None) -> bool:
        return self.move(key, ACTIVE, index)

    def remove(self, key: str) -> bool:
        return self.move(key, AVAILABLE)

    def to_layout(self) -> PageLayout:
        return PageLayout.from_dict({"active_components": self.active, "grid_layout": self.grid_layout})

    def save(self, store: ConfigurationStore) -> bool:
        """
        Persist the active list. Returns False when there was nothing to save.
        Raises PersistenceError and stays in EDITING when the store refuses.
        """
        if self.state != EDITING:
            return False
        if not store.update_layout(self.page_name, self.to_layout()):
            raise PersistenceError(store.last_error or "Error saving layout. Please try again.")
        self.state = VIEWING
        return True

    def reset(self, stored: PageLayout | None) -> bool:
        if self.state != EDITING:
            return False
        self._load(stored or PageLayout())
        return True

    def to_dict(self) -> dict[str, Any]:
        return {
            "page_name": self.page_name,
            "state": self.state,
            "active": list(self.active),
            "available": list(self.available),
            "grid_layout": dict(self.grid_layout),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any], registry_keys: list[str] | tuple[str, ...]) -> "PageBuilder":
        builder = cls(data["page_name"], None, registry_keys)
        builder.active = [k for k in data.get("active") or [] if isinstance(k, str)]
        saved_available = [k for k in data.get("available") or [] if k in builder.registry_keys and k not in builder.active]
        # Widgets registered after the draft was taken still show up in the palette.
        extra = [k for k in builder.registry_keys if k not in builder.active and k not in saved_available]
        builder.available = saved_available + extra
        builder.grid_layout = dict(data.get("grid_layout") or {})
        builder.state = EDITING if data.get("state") == EDITING else VIEWING
        return builder
