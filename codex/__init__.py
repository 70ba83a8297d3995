"""
codex/ -- Core data engine for the Character Codex.

Submodules:
    models       Pydantic record models, defaults and catalog constants.
    utils        Shared JSON I/O, timestamps, ids and text folding helpers.
    persistence  Local storage slot holding the whole dataset document.
    data_store   Character/relation CRUD with cascade deletes.
    query        Filtering, sorting, tag parsing and relation lookups.
    backup       Export, validated import and reset of the whole dataset.
"""

from codex.models import APP_VERSION

__all__ = ["APP_VERSION"]
