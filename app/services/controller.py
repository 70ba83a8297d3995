"""
app/services/controller.py -- The seam between the UI layer and the engine.

The LedgerController owns the session state, the DataStore and the
BackupPipeline.  Views call its commands and re-read through its query
methods whenever ``state_changed`` fires; no incremental diff is sent.

Commands aimed at ids that do not exist are absorbed: they return
``False``/``None`` and emit nothing.

Usage::

    from app.services.controller import LedgerController

    controller = LedgerController("/path/to/data")
    controller.state_changed.connect(view.refresh)

    seren = controller.create_character()
    controller.update_character(seren["id"], {"name": "Seren"})
    result = controller.import_backup(text)
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator

from PySide6.QtCore import QObject, Signal

from app.paths import get_storage_dir
from app.services.event_bus import EventBus
from app.services.session import Session, View
from codex import query
from codex.backup import BackupPipeline, ImportResult, backup_filename
from codex.data_store import DataStore
from codex.persistence import LocalStorage

logger = logging.getLogger(__name__)

MSG_IMPORTED = "Backup imported. Your library is back."
MSG_IMPORT_FAILED = "Could not import. This JSON does not look like a Codex backup."
MSG_CATALOGS_SAVED = "Catalogs saved."
MSG_RESET = "Library cleared."


def parse_catalog_text(text: str) -> list[str]:
    """Turn one-entry-per-line text into a list of trimmed, non-empty entries."""
    return [line.strip() for line in (text or "").split("\n") if line.strip()]


class LedgerController(QObject):
    """Application controller for the Character Codex.

    Parameters
    ----------
    storage_dir : str, optional
        Directory of the storage slot.  Defaults to :func:`get_storage_dir`.
    storage : optional
        A ready persistence adapter; takes precedence over *storage_dir*.
    bus : EventBus, optional
        Event bus to broadcast on.  Defaults to the singleton.

    Signals
    -------
    state_changed()
        Emitted after every successful mutation of the dataset or session.
    notice(str, bool)
        A user-facing message and whether it reports an error.
    """

    state_changed = Signal()
    notice = Signal(str, bool)

    def __init__(
        self,
        storage_dir: str | None = None,
        *,
        storage=None,
        bus: EventBus | None = None,
        parent: QObject | None = None,
    ):
        super().__init__(parent)
        if storage is None:
            storage = LocalStorage(get_storage_dir(storage_dir))
        self.store = DataStore(storage)
        self.backup = BackupPipeline(self.store)
        self.session = Session()
        self.bus = bus if bus is not None else EventBus.instance()
        logger.info(
            "Controller ready (%d characters, %d relations)",
            len(self.store.characters), len(self.store.relations),
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def filtered_characters(self) -> list[dict]:
        return query.filtered_characters(
            self.store.characters,
            self.session.search_text,
            self.session.tag_filter_text,
        )

    def all_tags(self) -> list[str]:
        return query.all_tags(self.store.characters)

    def relations_for(self, character_id: str) -> list[dict[str, Any]]:
        return query.relations_for(self.store.relations, self.store.characters, character_id)

    def relation_targets(self, character_id: str) -> list[dict]:
        """Every character a relation from *character_id* may point to."""
        return [
            c for c in self.store.characters
            if isinstance(c, dict) and c.get("id") != character_id
        ]

    def get_selected(self) -> dict | None:
        return self.store.get_character(self.session.selected_id)

    @property
    def continents(self) -> list[str]:
        return self.store.continents

    @property
    def clans(self) -> list[str]:
        return self.store.clans

    @property
    def character_count(self) -> int:
        return len(self.store.characters)

    # ------------------------------------------------------------------
    # Character commands
    # ------------------------------------------------------------------

    def create_character(self) -> dict:
        """Create a character, select it and show the character view."""
        with self._write_guard("create a character"):
            character = self.store.create_character()
        self.session.selected_id = character["id"]
        self.session.current_view = View.CHARACTERS
        self.bus.character_created.emit(character["id"])
        self.bus.character_selected.emit(character["id"])
        self._changed()
        return character

    def update_character(self, character_id: str, patch: dict) -> bool:
        with self._write_guard("update a character"):
            updated = self.store.update_character(character_id, patch)
        if updated:
            self.bus.character_updated.emit(character_id)
            self._changed()
        return updated

    def update_tags(self, character_id: str, raw_text: str) -> bool:
        """Replace a character's tags with those parsed from *raw_text*."""
        return self.update_character(character_id, {"tags": query.parse_tags(raw_text)})

    def toggle_favorite(self, character_id: str) -> bool:
        character = self.store.get_character(character_id)
        if character is None:
            return False
        return self.update_character(character_id, {"favorite": not character.get("favorite")})

    def delete_character(self, character_id: str) -> bool:
        """Delete a character and its relations; clears it from the selection."""
        with self._write_guard("delete a character"):
            removed = self.store.delete_character(character_id)
        if self.session.selected_id == character_id:
            self.session.selected_id = None
            self.bus.character_selected.emit("")
        if removed:
            self.bus.character_deleted.emit(character_id)
            self._changed()
        return removed

    # ------------------------------------------------------------------
    # Relation commands
    # ------------------------------------------------------------------

    def add_relation(
        self,
        from_id: str,
        to_id: str,
        rel_type: str | None = None,
        note: str = "",
    ) -> dict | None:
        with self._write_guard("add a relation"):
            relation = self.store.add_relation(from_id, to_id, rel_type, (note or "").strip())
        if relation is not None:
            self.bus.relations_changed.emit(from_id)
            self._changed()
        return relation

    def remove_relation(self, relation_id: str) -> bool:
        source = next(
            (r.get("fromId", "") for r in self.store.relations
             if isinstance(r, dict) and r.get("id") == relation_id),
            "",
        )
        with self._write_guard("remove a relation"):
            removed = self.store.remove_relation(relation_id)
        if removed:
            self.bus.relations_changed.emit(source)
            self._changed()
        return removed

    # ------------------------------------------------------------------
    # World catalogs
    # ------------------------------------------------------------------

    def set_catalogs(self, continents: list[str], clans: list[str]) -> None:
        with self._write_guard("save the catalogs"):
            self.store.set_catalogs(continents, clans)
        self.bus.catalogs_changed.emit()
        self._notify(MSG_CATALOGS_SAVED)
        self._changed()

    def save_catalog_text(self, continents_text: str, clans_text: str) -> None:
        """Save catalogs edited as newline-separated text."""
        self.set_catalogs(
            parse_catalog_text(continents_text),
            parse_catalog_text(clans_text),
        )

    # ------------------------------------------------------------------
    # Session commands
    # ------------------------------------------------------------------

    def set_selection(self, character_id: str | None) -> bool:
        """Select a character (and show it), or clear with None.

        Selecting an id that does not exist changes nothing.
        """
        if character_id is None:
            self.session.selected_id = None
            self.bus.character_selected.emit("")
            self._changed()
            return True
        if self.store.get_character(character_id) is None:
            logger.debug("Selection ignored: no character %s", character_id)
            return False
        self.session.selected_id = character_id
        self.session.current_view = View.CHARACTERS
        self.bus.character_selected.emit(character_id)
        self._changed()
        return True

    def set_view(self, mode: View | str) -> None:
        """Switch the current view.  Raises ValueError for unknown modes."""
        view = View(mode)
        self.session.current_view = view
        self.bus.view_changed.emit(view.value)
        self._changed()

    def set_search_text(self, text: str) -> None:
        self.session.search_text = text or ""
        self._changed()

    def set_tag_filter(self, text: str) -> None:
        self.session.tag_filter_text = text or ""
        self._changed()

    # ------------------------------------------------------------------
    # Backup commands
    # ------------------------------------------------------------------

    def export_backup(self) -> str:
        return self.backup.export_backup()

    def backup_filename(self) -> str:
        return backup_filename()

    def export_backup_file(self, directory) -> str:
        """Write a backup file into *directory* and return its path."""
        path = self.backup.write_backup(directory)
        self._notify(f"Backup saved to {path}")
        return str(path)

    def import_backup(self, text: str | bytes | None) -> ImportResult:
        """Replace the dataset from backup text; the dataset is untouched on failure."""
        with self._write_guard("import a backup"):
            result = self.backup.import_backup(text)
        return self._after_import(result)

    def import_backup_file(self, path) -> ImportResult:
        with self._write_guard("import a backup"):
            result = self.backup.read_backup(path)
        return self._after_import(result)

    def reset_all(self) -> None:
        """Replace everything with a fresh default dataset."""
        with self._write_guard("reset the library"):
            self.backup.reset()
        self.session.clear_filters()
        self.bus.dataset_replaced.emit()
        self._notify(MSG_RESET)
        self._changed()

    def _after_import(self, result: ImportResult) -> ImportResult:
        if not result.ok:
            self.bus.error_occurred.emit(MSG_IMPORT_FAILED)
            self._notify(MSG_IMPORT_FAILED, error=True)
            return result
        self.session.clear_filters()
        self.bus.dataset_replaced.emit()
        self._notify(MSG_IMPORTED)
        self._changed()
        return result

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _changed(self) -> None:
        self.state_changed.emit()

    def _notify(self, message: str, *, error: bool = False) -> None:
        self.notice.emit(message, error)
        if not error:
            self.bus.status_message.emit(message)

    @contextmanager
    def _write_guard(self, action: str) -> Iterator[None]:
        """Log and surface storage write failures, then re-raise them."""
        try:
            yield
        except OSError:
            logger.exception("Failed to save the library while trying to %s", action)
            self.bus.error_occurred.emit(f"Could not save while trying to {action}.")
            raise
