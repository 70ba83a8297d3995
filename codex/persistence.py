"""
codex/persistence.py -- Local storage slot for the whole dataset document.

The dataset lives in one JSON document addressed by a fixed key.  The slot
is a file named ``<key>.json`` inside the storage directory; every save
rewrites it completely through an atomic temp-file replace.

Loading never fails the caller:
    - a missing slot yields a fresh default dataset,
    - an unparseable or non-object document yields a fresh default dataset,
    - a partial document has every missing top-level field filled in.

Usage::

    from codex.persistence import LocalStorage

    storage = LocalStorage("/path/to/data")
    dataset = storage.load()
    storage.save(dataset)
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

from codex.models import DEFAULT_CLANS, DEFAULT_CONTINENTS, default_dataset, new_meta
from codex.utils import now_iso, safe_read_json, safe_write_json

logger = logging.getLogger(__name__)

STORAGE_KEY = "codex_v3_data"


class LocalStorage:
    """Synchronous, process-local storage for the dataset document.

    Parameters
    ----------
    storage_dir : str or pathlib.Path
        Directory holding the slot file.  Created on first save.
    key : str, optional
        Slot key; the file name is ``<key>.json``.
    """

    def __init__(self, storage_dir, key: str = STORAGE_KEY):
        self.storage_dir = Path(storage_dir)
        self.key = key
        self.path = self.storage_dir / f"{key}.json"

    def exists(self) -> bool:
        """Return True if the slot holds a document."""
        return self.path.is_file()

    def load(self) -> dict[str, Any]:
        """Read the dataset from the slot, falling back to defaults."""
        if not self.exists():
            logger.info("No stored dataset at %s; starting fresh", self.path)
            return default_dataset()

        data = safe_read_json(self.path)
        if not isinstance(data, dict):
            logger.warning("Stored dataset at %s is unreadable; using defaults", self.path)
            return default_dataset()

        return _fill_missing_fields(data)

    def save(self, dataset: dict[str, Any]) -> None:
        """Stamp ``meta.updatedAt`` and overwrite the slot with *dataset*."""
        meta = dataset.get("meta")
        if not isinstance(meta, dict):
            meta = new_meta()
            dataset["meta"] = meta
        meta["updatedAt"] = now_iso()
        safe_write_json(self.path, dataset)
        logger.debug(
            "Saved dataset (%d characters, %d relations) to %s",
            len(dataset.get("characters") or []),
            len(dataset.get("relations") or []),
            self.path,
        )

    def clear(self) -> None:
        """Remove the slot file if present."""
        try:
            os.remove(self.path)
        except FileNotFoundError:
            pass


def _fill_missing_fields(data: dict[str, Any]) -> dict[str, Any]:
    """Fill top-level fields that older or partial documents lack."""
    if not isinstance(data.get("meta"), dict):
        data["meta"] = new_meta()
    if not isinstance(data.get("characters"), list):
        data["characters"] = []
    if not isinstance(data.get("relations"), list):
        data["relations"] = []
    if not isinstance(data.get("continents"), list):
        data["continents"] = list(DEFAULT_CONTINENTS)
    if not isinstance(data.get("clans"), list):
        data["clans"] = list(DEFAULT_CLANS)
    return data
