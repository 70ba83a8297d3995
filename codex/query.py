"""
codex/query.py -- Derived views over the dataset.

Pure functions: they never mutate the records they are given, and every
returned list is new.

    filtered_characters   favorites first, then tag filter, then text search
    all_tags              distinct tags in locale-style order
    relations_for         outbound relations with the target resolved
    parse_tags            free-text tag field -> list of tags
"""

from __future__ import annotations

import re
from typing import Any, Iterable

from codex.models import LONG_TEXT_FIELDS, UNKNOWN_CHARACTER_NAME
from codex.utils import collation_key

# Commas, or runs of two or more whitespace characters.
_TAG_SPLIT_RE = re.compile(r",+|\s{2,}")

_SEARCH_FIELDS: tuple[str, ...] = (
    "name", "alias", "race", "age", "status", "continent", "clan",
)


def _tags_of(character: dict) -> list:
    return character.get("tags") or []


def _search_blob(character: dict) -> str:
    """Concatenate every text-bearing field of *character*, lower-cased."""
    parts = [str(character.get(field) or "") for field in _SEARCH_FIELDS]
    parts.append(" ".join(str(t) for t in _tags_of(character)))
    parts.extend(str(character.get(field) or "") for field in LONG_TEXT_FIELDS)
    return " ".join(parts).lower()


def filtered_characters(
    characters: Iterable[dict],
    search_text: str = "",
    tag_filter: str = "",
) -> list[dict]:
    """Return characters ordered favorites-first and narrowed by the filters.

    The sort is stable, so characters with the same favorite flag keep the
    order they have in the store (newest first).  The tag filter keeps
    characters with a tag equal to *tag_filter* ignoring case; the search
    keeps characters whose text contains *search_text* ignoring case.
    Both inputs are trimmed; empty inputs do not filter.
    """
    query = (search_text or "").strip().lower()
    tag = (tag_filter or "").strip().lower()

    result = sorted(
        (c for c in characters if isinstance(c, dict)),
        key=lambda c: not c.get("favorite"),
    )

    if tag:
        result = [
            c for c in result
            if any(str(t).lower() == tag for t in _tags_of(c))
        ]

    if query:
        result = [c for c in result if query in _search_blob(c)]

    return result


def all_tags(characters: Iterable[dict]) -> list[str]:
    """Return every distinct tag, sorted like a dictionary would list them."""
    tags: set[str] = set()
    for character in characters:
        if isinstance(character, dict):
            tags.update(str(t) for t in _tags_of(character))
    return sorted(tags, key=collation_key)


def relations_for(
    relations: Iterable[dict],
    characters: Iterable[dict],
    character_id: str,
) -> list[dict[str, Any]]:
    """Return the outbound relations of *character_id*.

    Each entry is a copy of the relation with a ``"to"`` key holding the
    target character.  A target that no longer exists is replaced by a
    placeholder record named ``UNKNOWN_CHARACTER_NAME``.
    """
    by_id = {
        c.get("id"): c for c in characters
        if isinstance(c, dict)
    }
    resolved = []
    for rel in relations:
        if not isinstance(rel, dict) or rel.get("fromId") != character_id:
            continue
        entry = dict(rel)
        entry["to"] = by_id.get(rel.get("toId")) or {"name": UNKNOWN_CHARACTER_NAME}
        resolved.append(entry)
    return resolved


def parse_tags(raw_text: str) -> list[str]:
    """Split a free-text tag field into tags.

    Examples:
        "Arcanyth,  Ordem Real   Luxúria, #rei"
            -> ["Arcanyth", "Ordem Real", "Luxúria", "rei"]
    """
    pieces = (piece.strip() for piece in _TAG_SPLIT_RE.split(raw_text or ""))
    return [_strip_hash(piece) for piece in pieces if piece]


def _strip_hash(tag: str) -> str:
    return tag[1:] if tag.startswith("#") else tag
