"""
codex/backup.py -- Backup export, validated import and reset.

A backup is the dataset document itself, pretty-printed.  It has exactly
the shape of the local storage slot, so anything exported can be imported
back unchanged.

Import runs an explicit validation step before anything is touched:

    1. the text must parse as JSON,
    2. the parsed value must be an object whose ``characters`` is an array
       (checked with a JSON Schema),
    3. ``relations`` defaults to ``[]`` when it is not an array and ``meta``
       is synthesized when missing.

Individual character and relation records are deliberately not checked;
they are carried over as they are.  Validation yields an ``ImportResult``
that is either ok (with the dataset) or a failure (with a reason), and the
store is only replaced on success.

Usage:
    from codex.backup import BackupPipeline

    pipeline = BackupPipeline(store)
    text = pipeline.export_backup()
    result = pipeline.import_backup(text)
    if not result.ok:
        print(result.reason, result.detail)
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Any

import jsonschema

from codex.models import default_dataset, new_meta
from codex.utils import dump_json, parse_json

logger = logging.getLogger(__name__)

INVALID_BACKUP_REASON = "not a valid backup document"

BACKUP_FILENAME_PREFIX = "codex-backup-v3"

# Minimum structure an importable document must have.
BACKUP_SCHEMA: dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "required": ["characters"],
    "properties": {
        "characters": {"type": "array"},
    },
}

_validator = jsonschema.Draft202012Validator(BACKUP_SCHEMA)


@dataclass(frozen=True)
class ImportResult:
    """Outcome of validating or importing a backup document.

    ``dataset`` is set only when ``ok`` is True; ``reason`` and ``detail``
    only when it is False.
    """

    ok: bool
    dataset: dict[str, Any] | None = None
    reason: str = ""
    detail: str = ""

    @classmethod
    def success(cls, dataset: dict[str, Any]) -> ImportResult:
        return cls(ok=True, dataset=dataset)

    @classmethod
    def failure(cls, detail: str) -> ImportResult:
        return cls(ok=False, reason=INVALID_BACKUP_REASON, detail=detail)


def backup_filename(today: date | None = None) -> str:
    """Return the conventional export file name, e.g.
    ``codex-backup-v3-2026-10-19.json``."""
    today = today or date.today()
    return f"{BACKUP_FILENAME_PREFIX}-{today.isoformat()}.json"


def validate_backup(raw: str | bytes | None) -> ImportResult:
    """Parse and check *raw* without touching any store."""
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            return ImportResult.failure(f"The file is not UTF-8 text: {exc}")

    try:
        incoming = parse_json(raw or "")
    except json.JSONDecodeError as exc:
        return ImportResult.failure(f"The text is not valid JSON: {exc.msg} (line {exc.lineno})")
    except ValueError as exc:
        return ImportResult.failure(f"The text is not valid JSON: {exc}")
    except RecursionError:
        return ImportResult.failure("The text is nested too deeply to read")

    errors = sorted(_validator.iter_errors(incoming), key=lambda e: list(e.absolute_path))
    if errors:
        return ImportResult.failure(_humanize_error(errors[0]))

    if not isinstance(incoming.get("relations"), list):
        incoming["relations"] = []
    if not isinstance(incoming.get("meta"), dict):
        incoming["meta"] = new_meta()
    return ImportResult.success(incoming)


def _humanize_error(error: jsonschema.ValidationError) -> str:
    """Convert a ``jsonschema.ValidationError`` into plain English."""
    path = " -> ".join(str(p) for p in error.absolute_path) if error.absolute_path else "(root)"
    if error.validator == "required":
        return f"Missing required field at {path}: {error.message}"
    if error.validator == "type":
        return f"Wrong data type at '{path}': {error.message}"
    return f"Issue at '{path}': {error.message}"


class BackupPipeline:
    """Export, import and reset of the whole dataset held by a DataStore.

    Parameters
    ----------
    store : codex.data_store.DataStore
        The store whose dataset is exported and replaced.
    """

    def __init__(self, store):
        self.store = store

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def export_backup(self) -> str:
        """Return the current dataset as pretty-printed JSON."""
        return dump_json(self.store.dataset)

    def write_backup(self, directory, today: date | None = None) -> Path:
        """Write the export to ``<directory>/<backup_filename()>``.

        Returns the path of the written file.
        """
        directory = Path(directory)
        os.makedirs(directory, exist_ok=True)
        path = directory / backup_filename(today)
        path.write_text(self.export_backup(), encoding="utf-8")
        logger.info("Backup written to %s", path)
        return path

    # ------------------------------------------------------------------
    # Import
    # ------------------------------------------------------------------

    def import_backup(self, raw: str | bytes | None) -> ImportResult:
        """Validate *raw* and, if it passes, replace the whole dataset."""
        result = validate_backup(raw)
        if not result.ok:
            logger.warning("Backup rejected: %s", result.detail)
            return result
        self.store.replace_dataset(result.dataset)
        return result

    def read_backup(self, path) -> ImportResult:
        """Read a backup file from disk and import it."""
        try:
            raw = Path(path).read_bytes()
        except OSError as exc:
            logger.warning("Could not read backup file %s: %s", path, exc)
            return ImportResult.failure(f"The file could not be read: {exc}")
        return self.import_backup(raw)

    # ------------------------------------------------------------------
    # Reset
    # ------------------------------------------------------------------

    def reset(self) -> None:
        """Replace the dataset with a fresh default one."""
        self.store.replace_dataset(default_dataset())
