"""
Character Codex -- application layer.

Package layout:
    services/   Application services (event bus, session state, controller)
    paths.py    Storage directory resolution for frozen and development modes
    main.py     Headless entry point for backup maintenance

The record engine itself lives in the ``codex`` package; rendering is left
to whichever UI layer drives the controller.
"""
