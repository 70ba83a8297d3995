"""
app/main.py -- Headless entry point for library maintenance.

Opens the local library through the controller and runs one backup
operation.  Rendering belongs to the UI layer; this entry point is for
scripted exports, restores and resets.

Usage::

    python -m app.main --summary
    python -m app.main --export ~/backups
    python -m app.main --import ~/backups/codex-backup-v3-2026-10-19.json
    python -m app.main --reset --data-dir /tmp/codex
"""

from __future__ import annotations

import argparse
import logging
import os
import sys

# Ensure project root is on sys.path
_THIS_DIR = os.path.dirname(os.path.abspath(__file__))
_PROJECT_ROOT = os.path.dirname(_THIS_DIR)
if _PROJECT_ROOT not in sys.path:
    sys.path.insert(0, _PROJECT_ROOT)

from app.paths import get_storage_dir


def _setup_logging(verbose: bool = False) -> None:
    """Configure logging for command-line runs."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Character Codex library maintenance")
    parser.add_argument("--data-dir", help="Directory holding the library (default: platform data dir)")
    action = parser.add_mutually_exclusive_group()
    action.add_argument("--export", metavar="DIR", help="Write a backup file into DIR")
    action.add_argument("--import", dest="import_path", metavar="FILE", help="Replace the library from a backup file")
    action.add_argument("--reset", action="store_true", help="Replace the library with the defaults")
    action.add_argument("--summary", action="store_true", help="Print counts and tags (default)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Run one maintenance command.  Returns the process exit code."""
    args = _build_parser().parse_args(argv)
    _setup_logging(args.verbose)
    logger = logging.getLogger("app")

    from PySide6.QtCore import QCoreApplication
    app = QCoreApplication.instance() or QCoreApplication(sys.argv[:1])  # noqa: F841

    from app.services.controller import LedgerController
    storage_dir = get_storage_dir(args.data_dir)
    logger.info("Library directory: %s", storage_dir)
    controller = LedgerController(storage_dir)

    if args.export:
        path = controller.export_backup_file(args.export)
        print(path)
        return 0

    if args.import_path:
        result = controller.import_backup_file(args.import_path)
        if not result.ok:
            logger.error("Import failed: %s (%s)", result.reason, result.detail)
            return 1
        logger.info("Imported %d characters", controller.character_count)
        return 0

    if args.reset:
        controller.reset_all()
        logger.info("Library reset")
        return 0

    print(f"characters: {controller.character_count}")
    print(f"relations: {len(controller.store.relations)}")
    print(f"continents: {', '.join(str(c) for c in controller.continents)}")
    print(f"clans: {', '.join(str(c) for c in controller.clans)}")
    print(f"tags: {', '.join(controller.all_tags())}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
