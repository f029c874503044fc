"""
ConfigurationStore: the single owner of the Configuration document.

Readers take `store.config`, an immutable snapshot. Mutators persist through
the backend first and only then replace the snapshot, so a failed write leaves
both the stored and the in-memory document unchanged. Each mutator returns a
success flag; the reason for the last failure is kept in `last_error`.
"""
from __future__ import annotations

import logging
import threading
import time
import uuid
from collections.abc import Callable
from dataclasses import replace

from flask import Flask, current_app, g, has_app_context

from app.crm.errors import PersistenceError
from app.crm.modules.configuration.backend import ConfigurationBackend, SqlConfigurationBackend
from app.crm.modules.configuration.document import (
    Configuration,
    CustomFieldDefinition,
    GeneralSettings,
    PageLayout,
    Theme,
)

logger = logging.getLogger(__name__)

_EXTENSION_KEY = "configuration_store"


class ConfigurationStore:
    def __init__(
        self,
        backend: ConfigurationBackend,
        *,
        save_attempts: int = 3,
        save_backoff: float = 0.5,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._backend = backend
        self._save_attempts = max(1, save_attempts)
        self._save_backoff = max(0.0, save_backoff)
        self._sleep = sleep
        self._config = Configuration()
        self._loaded = False
        self._closed = False
        self._loading = False
        # Backend stamp the current snapshot was read at.
        self._version: str | int | None = None
        # Held for the whole duration of a write; a second writer is turned away, not queued.
        self._write_guard = threading.Lock()
        self.last_error: str | None = None

    # ---------- Read side ----------

    @property
    def config(self) -> Configuration:
        return self._config

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def loaded(self) -> bool:
        return self._loaded

    @property
    def busy(self) -> bool:
        return self._write_guard.locked()

    def load(self) -> Configuration:
        """(Re)read the whole document from the backend."""
        if self._closed:
            raise PersistenceError("Configuration store is closed.")
        self._loading = True
        try:
            # Stamp first: a write landing between the two reads triggers one more reload later.
            version = self._backend.version()
            doc = self._backend.load()
        except Exception as e:
            logger.exception("Loading configuration failed")
            raise PersistenceError(f"Could not load configuration: {e}") from e
        finally:
            self._loading = False
        self._config = doc
        self._version = version
        self._loaded = True
        logger.info(
            "Configuration loaded: %d custom field(s), %d page layout(s)",
            len(doc.custom_fields),
            len(doc.layout),
        )
        return doc

    def refresh(self) -> Configuration:
        """
        Reload when the stored document changed since the last read, e.g. a
        save made by another worker process. Cheap when nothing changed.
        """
        if self._closed:
            return self._config
        if not self._loaded:
            return self.load()
        try:
            current = self._backend.version()
        except Exception as e:
            logger.exception("Reading configuration version failed")
            raise PersistenceError(f"Could not check configuration version: {e}") from e
        if current != self._version:
            logger.info("Stored configuration changed; reloading")
            return self.load()
        return self._config

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._backend.close()

    # ---------- Mutators ----------

    def update_general(self, general: GeneralSettings) -> bool:
        return self._commit(
            "update_general",
            lambda: self._backend.save_section("general", general.to_dict()),
            lambda doc: doc.with_general(general),
        )

    def update_theme(self, theme: Theme) -> bool:
        return self._commit(
            "update_theme",
            lambda: self._backend.save_section("theme", theme.to_dict()),
            lambda doc: doc.with_theme(theme),
        )

    def add_custom_field(self, definition: CustomFieldDefinition) -> bool:
        """Assigns a fresh id and appends the definition."""
        stored = replace(definition, id=uuid.uuid4().hex)
        return self._commit(
            "add_custom_field",
            lambda: self._backend.insert_custom_field(stored),
            lambda doc: doc.with_custom_fields(doc.custom_fields + (stored,)),
        )

    def update_custom_field(self, field_id: str, definition: CustomFieldDefinition) -> bool:
        stored = replace(definition, id=field_id)
        return self._commit(
            "update_custom_field",
            lambda: self._backend.update_custom_field(stored),
            lambda doc: doc.with_custom_fields(
                tuple(stored if f.id == field_id else f for f in doc.custom_fields)
            ),
            precheck=lambda doc: _field_exists(doc, field_id),
        )

    def delete_custom_field(self, field_id: str) -> bool:
        return self._commit(
            "delete_custom_field",
            lambda: self._backend.delete_custom_field(field_id),
            lambda doc: doc.with_custom_fields(tuple(f for f in doc.custom_fields if f.id != field_id)),
            precheck=lambda doc: _field_exists(doc, field_id),
        )

    def update_layout(self, page_name: str, layout: PageLayout) -> bool:
        return self._commit(
            "update_layout",
            lambda: self._backend.save_layout(page_name, layout),
            lambda doc: doc.with_layout(page_name, layout),
        )

    # ---------- Internals ----------

    def _commit(
        self,
        op: str,
        persist: Callable[[], None],
        apply: Callable[[Configuration], Configuration],
        precheck: Callable[[Configuration], str | None] | None = None,
    ) -> bool:
        if self._closed:
            self.last_error = "Configuration store is closed."
            return False
        if not self._write_guard.acquire(blocking=False):
            logger.warning("%s rejected: another configuration write is in flight", op)
            self.last_error = "Another change is still being saved."
            return False
        try:
            # Apply on top of what is stored now, not on a snapshot another worker replaced.
            self.refresh()
            if precheck is not None:
                problem = precheck(self._config)
                if problem:
                    self.last_error = problem
                    return False
            self._persist_with_retry(op, persist)
            self._config = apply(self._config)
            self.last_error = None
            logger.info("Configuration change committed: %s", op)
            return True
        except PersistenceError as e:
            self.last_error = str(e)
            return False
        finally:
            self._write_guard.release()

    def _persist_with_retry(self, op: str, persist: Callable[[], None]) -> None:
        last_err: Exception | None = None
        for attempt in range(self._save_attempts):
            try:
                persist()
                return
            except Exception as e:
                last_err = e
                logger.warning("%s attempt %d/%d failed: %s", op, attempt + 1, self._save_attempts, e)
                if attempt + 1 < self._save_attempts and self._save_backoff:
                    self._sleep(self._save_backoff * (2**attempt))
        logger.error("%s failed after %d attempt(s): %s", op, self._save_attempts, last_err)
        raise PersistenceError(f"{op} failed: {last_err}")


def _field_exists(doc: Configuration, field_id: str) -> str | None:
    if doc.find_custom_field(field_id) is None:
        return f"Custom field {field_id} not found."
    return None


def init_store(app: Flask, store: ConfigurationStore | None = None) -> ConfigurationStore:
    """
    Attach a configuration store to the app. The document is read lazily on
    first use so the app can be created before its tables exist.
    """
    if store is None:
        store = ConfigurationStore(
            SqlConfigurationBackend(app.extensions["sqlalchemy_sessionmaker"]),
            save_attempts=int(app.config.get("CONFIG_SAVE_ATTEMPTS", 3)),
            save_backoff=float(app.config.get("CONFIG_SAVE_BACKOFF", 0.5)),
        )
    previous = app.extensions.get(_EXTENSION_KEY)
    if previous is not None and previous is not store:
        previous.close()
    app.extensions[_EXTENSION_KEY] = store
    return store


def get_store(app: Flask | None = None) -> ConfigurationStore:
    """
    Return the app's store, brought up to date with the database. Inside a
    request the version check runs once; later calls reuse that snapshot.
    """
    target = app if app is not None else current_app._get_current_object()
    store: ConfigurationStore = target.extensions[_EXTENSION_KEY]
    if has_app_context() and current_app._get_current_object() is target:
        if not g.get("_config_fresh"):
            store.refresh()
            g._config_fresh = True
    else:
        store.refresh()
    return store


def teardown_store(app: Flask) -> None:
    store = app.extensions.pop(_EXTENSION_KEY, None)
    if store is not None:
        store.close()
