"""
codex/models.py -- Pydantic v2 record models for the Character Codex.

The dataset is persisted and exchanged as a plain JSON document, so the
store keeps records as dicts.  These models define the shape and the
defaults of *new* records; they are dumped with camelCase aliases
(``createdAt``, ``fromId``...) to match the stored document.

Records that arrive through a backup import are never forced through the
models, so unknown or malformed fields survive a round trip unchanged.

Usage::

    from codex.models import new_character, default_dataset

    dataset = default_dataset()
    dataset["characters"].insert(0, new_character())
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from codex.utils import generate_id, now_iso

APP_VERSION = "3.0.0"

STATUSES: tuple[str, ...] = ("alive", "dead", "missing", "unknown")
RELATION_TYPES: tuple[str, ...] = (
    "ally", "enemy", "family", "romance", "mentor",
    "disciple", "rival", "subordinate", "superior",
)
DEFAULT_RELATION_TYPE = "ally"

DEFAULT_CONTINENTS: tuple[str, ...] = (
    "Varyon", "Brelgorn", "Kaelyra", "Zathari", "Solvarya", "Sythra", "Noctharra",
)
DEFAULT_CLANS: tuple[str, ...] = ("Arcanyth", "Alfanor", "Quinq")

NEW_CHARACTER_NAME = "New character"
UNKNOWN_CHARACTER_NAME = "Unknown (deleted)"

# Long-form text fields, in the order they are searched.
LONG_TEXT_FIELDS: tuple[str, ...] = (
    "appearance", "personality", "lore", "powers", "weaknesses", "notes",
)

CharacterStatus = Literal["alive", "dead", "missing", "unknown"]


class _Record(BaseModel):
    """Base for stored records: camelCase on the wire, extra keys kept."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class Character(_Record):
    """One fictional entity in the user's world."""

    id: str = Field(default_factory=generate_id)
    name: str = NEW_CHARACTER_NAME
    alias: str = ""
    race: str = ""
    age: str = ""
    status: CharacterStatus = "alive"
    continent: str = ""
    clan: str = ""
    tags: list[str] = Field(default_factory=list)
    appearance: str = ""
    personality: str = ""
    lore: str = ""
    powers: str = ""
    weaknesses: str = ""
    notes: str = ""
    created_at: str = Field(default_factory=now_iso, alias="createdAt")
    updated_at: str = Field(default_factory=now_iso, alias="updatedAt")
    favorite: bool = False


class Relation(_Record):
    """A directed, typed edge between two characters."""

    id: str = Field(default_factory=generate_id)
    from_id: str = Field(alias="fromId")
    to_id: str = Field(alias="toId")
    type: str = DEFAULT_RELATION_TYPE
    note: str = ""
    created_at: str = Field(default_factory=now_iso, alias="createdAt")


class DatasetMeta(_Record):
    """The ``meta`` block of a dataset document."""

    version: str = APP_VERSION
    created_at: str = Field(default_factory=now_iso, alias="createdAt")
    updated_at: str = Field(default_factory=now_iso, alias="updatedAt")


# ------------------------------------------------------------------
# Factories
# ------------------------------------------------------------------

def new_character() -> dict[str, Any]:
    """Return a fresh character document with the documented defaults."""
    now = now_iso()
    return Character(createdAt=now, updatedAt=now).to_document()


def new_relation(from_id: str, to_id: str, rel_type: str | None, note: str = "") -> dict[str, Any]:
    """Return a fresh relation document; a falsy type becomes ``"ally"``."""
    return Relation(
        fromId=from_id,
        toId=to_id,
        type=rel_type or DEFAULT_RELATION_TYPE,
        note=note or "",
        createdAt=now_iso(),
    ).to_document()


def new_meta() -> dict[str, Any]:
    """Return a ``meta`` block stamped with the running version."""
    now = now_iso()
    return DatasetMeta(createdAt=now, updatedAt=now).to_document()


def default_dataset() -> dict[str, Any]:
    """Return the dataset used on first run and after a reset."""
    return {
        "meta": new_meta(),
        "continents": list(DEFAULT_CONTINENTS),
        "clans": list(DEFAULT_CLANS),
        "characters": [],
        "relations": [],
    }
