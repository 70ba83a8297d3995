"""
codex/data_store.py -- Character and relation CRUD for the Character Codex.

Owns the canonical in-memory dataset.  Every other part of the program
goes through the DataStore rather than touching the document directly.

Every successful mutation writes the full dataset through the storage
adapter before returning.  Mutations aimed at ids that do not exist are a
defined no-op: they return ``False``/``None`` and persist nothing.

Deleting a character also deletes every relation touching it, so no
relation ever points at a character that is gone.

Usage:
    from codex.data_store import DataStore
    from codex.persistence import LocalStorage

    store = DataStore(LocalStorage("/path/to/data"))
    seren = store.create_character()
    store.update_character(seren["id"], {"name": "Seren"})
    store.delete_character(seren["id"])
"""

from __future__ import annotations

import logging
from typing import Any

from codex.models import DEFAULT_RELATION_TYPE, new_character, new_relation
from codex.utils import now_iso

logger = logging.getLogger(__name__)

# Keys a patch may never overwrite.
_IMMUTABLE_KEYS = frozenset({"id"})


class DataStore:
    """Canonical in-memory collections of characters and relations.

    Parameters
    ----------
    storage
        Persistence adapter exposing ``load() -> dict`` and ``save(dict)``.
    """

    def __init__(self, storage):
        self.storage = storage
        self._data: dict[str, Any] = storage.load()

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def dataset(self) -> dict[str, Any]:
        return self._data

    @property
    def characters(self) -> list:
        return self._data["characters"]

    @property
    def relations(self) -> list:
        return self._data["relations"]

    # Imported backups may omit the catalogs; they read as empty.
    @property
    def continents(self) -> list:
        continents = self._data.get("continents")
        return continents if isinstance(continents, list) else []

    @property
    def clans(self) -> list:
        clans = self._data.get("clans")
        return clans if isinstance(clans, list) else []

    def get_character(self, character_id: str | None) -> dict | None:
        """Return the character with *character_id*, or None."""
        if not character_id:
            return None
        for character in self.characters:
            if isinstance(character, dict) and character.get("id") == character_id:
                return character
        return None

    # ------------------------------------------------------------------
    # Characters
    # ------------------------------------------------------------------

    def create_character(self) -> dict:
        """Create a character with default fields at the front of the list."""
        character = new_character()
        self.characters.insert(0, character)
        self._save()
        logger.debug("Created character %s", character["id"])
        return character

    def update_character(self, character_id: str, patch: dict) -> bool:
        """Merge *patch* into a character and refresh its ``updatedAt``.

        Returns False without touching storage if the id is unknown.
        """
        character = self.get_character(character_id)
        if character is None:
            logger.debug("Update ignored: no character %s", character_id)
            return False

        for key, value in patch.items():
            if key not in _IMMUTABLE_KEYS:
                character[key] = value
        character["updatedAt"] = now_iso()
        self._save()
        logger.debug("Updated character %s (%s)", character_id, ", ".join(patch))
        return True

    def delete_character(self, character_id: str) -> bool:
        """Delete a character and every relation that touches it."""
        before = len(self.characters)
        self._data["relations"] = [
            rel for rel in self.relations
            if not _touches(rel, character_id)
        ]
        self._data["characters"] = [
            c for c in self.characters
            if not (isinstance(c, dict) and c.get("id") == character_id)
        ]
        removed = len(self.characters) != before
        self._save()
        logger.debug("Deleted character %s (found=%s)", character_id, removed)
        return removed

    # ------------------------------------------------------------------
    # Relations
    # ------------------------------------------------------------------

    def add_relation(
        self,
        from_id: str,
        to_id: str,
        rel_type: str | None = None,
        note: str = "",
    ) -> dict | None:
        """Add a directed relation at the front of the list.

        Returns None (and persists nothing) when either id is empty or
        unknown, the ids are equal, or the same ``(from, to, type)``
        triple exists.  A falsy type is stored as ``"ally"`` and compared
        as such.
        """
        if not from_id or not to_id or from_id == to_id:
            return None
        if self.get_character(from_id) is None or self.get_character(to_id) is None:
            logger.debug("Relation ignored: unknown endpoint %s -> %s", from_id, to_id)
            return None
        rel_type = rel_type or DEFAULT_RELATION_TYPE
        if self.find_relation(from_id, to_id, rel_type) is not None:
            logger.debug("Relation %s -[%s]-> %s already exists", from_id, rel_type, to_id)
            return None

        relation = new_relation(from_id, to_id, rel_type, note)
        self.relations.insert(0, relation)
        self._save()
        logger.debug("Added relation %s -[%s]-> %s", from_id, rel_type, to_id)
        return relation

    def find_relation(self, from_id: str, to_id: str, rel_type: str | None) -> dict | None:
        """Return the relation matching the exact triple, if any."""
        for rel in self.relations:
            if not isinstance(rel, dict):
                continue
            if (rel.get("fromId"), rel.get("toId"), rel.get("type")) == (from_id, to_id, rel_type):
                return rel
        return None

    def remove_relation(self, relation_id: str) -> bool:
        """Remove the relation with *relation_id*.  Always persists."""
        before = len(self.relations)
        self._data["relations"] = [
            rel for rel in self.relations
            if not (isinstance(rel, dict) and rel.get("id") == relation_id)
        ]
        self._save()
        removed = len(self.relations) != before
        logger.debug("Removed relation %s (found=%s)", relation_id, removed)
        return removed

    # ------------------------------------------------------------------
    # Catalogs and whole-dataset operations
    # ------------------------------------------------------------------

    def set_catalogs(self, continents: list[str], clans: list[str]) -> None:
        """Replace both world catalogs."""
        self._data["continents"] = list(continents)
        self._data["clans"] = list(clans)
        self._save()
        logger.debug("Catalogs set (%d continents, %d clans)", len(continents), len(clans))

    def replace_dataset(self, dataset: dict[str, Any]) -> None:
        """Persist a whole new dataset document, then swap it in.

        If the write fails the current dataset stays in place.
        """
        self.storage.save(dataset)
        self._data = dataset
        logger.info(
            "Dataset replaced (%d characters, %d relations)",
            len(self.characters), len(self.relations),
        )

    def _save(self) -> None:
        self.storage.save(self._data)


def _touches(relation, character_id: str) -> bool:
    if not isinstance(relation, dict):
        return False
    return relation.get("fromId") == character_id or relation.get("toId") == character_id
