"""
app/services/session.py -- Per-run UI session state.

The session holds what the user is looking at, never what they wrote:
selection, current view, and the search and tag-filter text.  It is not
persisted.  The controller owns one instance and passes it to whatever
needs it.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class View(str, Enum):
    """Right-hand pane modes."""

    CHARACTERS = "characters"
    WORLD = "world-catalogs"
    BACKUP = "backup"


@dataclass
class Session:
    selected_id: str | None = None
    search_text: str = ""
    tag_filter_text: str = ""
    current_view: View = View.CHARACTERS

    def clear_filters(self) -> None:
        """Drop the selection and both filters (after import or reset)."""
        self.selected_id = None
        self.search_text = ""
        self.tag_filter_text = ""
