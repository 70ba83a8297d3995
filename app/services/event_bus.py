"""
app/services/event_bus.py -- Application-wide event bus using Qt signals.

Singleton that provides typed signals for cross-panel communication.
The controller broadcasts record lifecycle events here so that any view
can follow them without holding a reference to the controller.

Usage::

    from app.services.event_bus import EventBus

    bus = EventBus.instance()
    bus.character_selected.connect(my_handler)
    bus.character_selected.emit("3f9a1c...")
"""

from __future__ import annotations

import threading

from PySide6.QtCore import QObject, Signal


class EventBus(QObject):
    """Application-wide signal bus for cross-panel communication.

    Signals
    -------
    character_selected(str)
        Fired when the selection changes.  Payload is the character ID, or
        an empty string when the selection is cleared.
    character_created(str)
        Fired when a new character is created.  Payload is the character ID.
    character_updated(str)
        Fired when a character is modified.  Payload is the character ID.
    character_deleted(str)
        Fired when a character (and its relations) is deleted.
    relations_changed(str)
        Fired when a relation is added or removed.  Payload is the source
        character ID, or an empty string when unknown.
    catalogs_changed()
        Fired when the continent/clan catalogs are replaced.
    dataset_replaced()
        Fired after a backup import or a reset.
    view_changed(str)
        Fired when the current view changes.  Payload is the view value.
    error_occurred(str)
        Fired when an error needs to be shown to the user.
    status_message(str)
        Fired to show a transient status message.
    """

    # Character lifecycle
    character_selected = Signal(str)
    character_created = Signal(str)
    character_updated = Signal(str)
    character_deleted = Signal(str)

    # Relations and catalogs
    relations_changed = Signal(str)
    catalogs_changed = Signal()

    # Whole dataset
    dataset_replaced = Signal()

    # Navigation
    view_changed = Signal(str)

    # Error and status
    error_occurred = Signal(str)
    status_message = Signal(str)

    # Singleton
    _instance: EventBus | None = None
    _lock = threading.Lock()

    @classmethod
    def instance(cls) -> EventBus:
        """Return the singleton EventBus instance."""
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = cls()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset the singleton (for testing)."""
        with cls._lock:
            if cls._instance is not None:
                cls._instance.deleteLater()
            cls._instance = None
