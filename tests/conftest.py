"""
Shared pytest fixtures for the Character Codex test suite.

Provides:
    - storage_dir: an empty temporary directory for the storage slot
    - storage: a LocalStorage bound to storage_dir
    - store: a DataStore over a fresh default dataset
    - frozen_clock: pins every timestamp to a fixed value
    - qapp: a QCoreApplication for signal/slot machinery
    - controller: a LedgerController with a private EventBus
    - sample_backup: a small, valid backup document as a dict
"""

import sys
from pathlib import Path

import pytest

# ---------------------------------------------------------------------------
# Ensure codex/ and app/ are importable regardless of where pytest is invoked
# ---------------------------------------------------------------------------

PROJECT_ROOT = Path(__file__).resolve().parent.parent

if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

FIXED_NOW = "2025-01-01T00:00:00.000Z"


# ---------------------------------------------------------------------------
# Engine fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def storage_dir(tmp_path):
    """Return an empty directory for the storage slot."""
    path = tmp_path / "codex-data"
    path.mkdir()
    return path


@pytest.fixture
def storage(storage_dir):
    from codex.persistence import LocalStorage
    return LocalStorage(storage_dir)


@pytest.fixture
def store(storage):
    from codex.data_store import DataStore
    return DataStore(storage)


@pytest.fixture
def frozen_clock(monkeypatch):
    """Pin ``now_iso`` everywhere it has been imported."""
    import codex.data_store
    import codex.models
    import codex.persistence

    for module in (codex.models, codex.data_store, codex.persistence):
        monkeypatch.setattr(module, "now_iso", lambda: FIXED_NOW)
    return FIXED_NOW


@pytest.fixture
def sample_backup():
    """Return a valid backup document with two characters and one relation."""
    return {
        "meta": {
            "version": "3.0.0",
            "createdAt": "2024-06-01T10:00:00.000Z",
            "updatedAt": "2024-06-02T10:00:00.000Z",
        },
        "continents": ["Varyon", "Kaelyra"],
        "clans": ["Arcanyth"],
        "characters": [
            {
                "id": "c-seren",
                "name": "Seren",
                "alias": "the Pale",
                "race": "elf",
                "age": "212",
                "status": "alive",
                "continent": "Kaelyra",
                "clan": "Arcanyth",
                "tags": ["Arcanyth", "Ordem Real"],
                "appearance": "",
                "personality": "patient",
                "lore": "",
                "powers": "",
                "weaknesses": "",
                "notes": "",
                "createdAt": "2024-06-01T10:00:00.000Z",
                "updatedAt": "2024-06-01T10:00:00.000Z",
                "favorite": False,
            },
            {
                "id": "c-dravik",
                "name": "Dravik",
                "status": "missing",
                "tags": [],
                "favorite": True,
                "createdAt": "2024-06-01T09:00:00.000Z",
                "updatedAt": "2024-06-01T09:00:00.000Z",
            },
        ],
        "relations": [
            {
                "id": "r-1",
                "fromId": "c-seren",
                "toId": "c-dravik",
                "type": "rival",
                "note": "old debt",
                "createdAt": "2024-06-01T11:00:00.000Z",
            },
        ],
    }


# ---------------------------------------------------------------------------
# Application fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def qapp():
    """Make sure a QCoreApplication exists for signal/slot machinery."""
    from PySide6.QtCore import QCoreApplication

    app = QCoreApplication.instance()
    if app is None:
        app = QCoreApplication([])
    yield app


@pytest.fixture
def controller(storage_dir, qapp):
    from app.services.controller import LedgerController
    from app.services.event_bus import EventBus

    bus = EventBus()
    ctrl = LedgerController(str(storage_dir), bus=bus)
    yield ctrl
    bus.deleteLater()
