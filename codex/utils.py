"""
Shared utility functions for the Character Codex engine.

Consolidates the JSON I/O, timestamp, id and text-folding helpers used by
the persistence adapter, the data store and the query engine.

All JSON writes use atomic temp-file-then-os.replace() to prevent
data corruption from crashes.
"""

import json
import logging
import os
import secrets
import tempfile
import time
import unicodedata
from datetime import datetime, timezone

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Timestamps and ids
# ---------------------------------------------------------------------------

def now_iso() -> str:
    """Return the current UTC time as an ISO 8601 string with milliseconds."""
    return (
        datetime.now(timezone.utc)
        .isoformat(timespec="milliseconds")
        .replace("+00:00", "Z")
    )


def generate_id() -> str:
    """Generate an opaque record id: random hex followed by the clock in hex.

    The time suffix keeps ids from two sessions apart even if the random
    part were ever to repeat.
    """
    return f"{secrets.token_hex(6)}{int(time.time() * 1000):x}"


# ---------------------------------------------------------------------------
# JSON I/O (atomic writes)
# ---------------------------------------------------------------------------

def _reject_constant(name):
    raise ValueError(f"{name} is not valid JSON")


def parse_json(text: str):
    """Parse strict JSON text.  ``NaN`` and ``Infinity`` are rejected."""
    return json.loads(text, parse_constant=_reject_constant)


def safe_read_json(path, default=None):
    """Read a JSON file, returning *default* if the file is missing or corrupt.

    Parameters
    ----------
    path : str or pathlib.Path
        Absolute path to the JSON file.
    default
        Value returned when the file cannot be read (default ``None``).

    Returns
    -------
    object
        Parsed JSON content, or *default* on failure.
    """
    try:
        with open(path, "r", encoding="utf-8") as fh:
            return json.load(fh, parse_constant=_reject_constant)
    except FileNotFoundError:
        return default
    except (ValueError, RecursionError, OSError):
        logger.warning("Could not parse JSON at %s; using default", path)
        return default


def safe_write_json(path, data, *, indent=2):
    """Atomically write *data* as JSON to *path*.

    Uses a temporary file in the same directory followed by
    ``os.replace()`` so that readers never see a partially-written file.
    Parent directories are created if they do not exist.

    Parameters
    ----------
    path : str or pathlib.Path
        Absolute path to the target JSON file.
    data
        JSON-serialisable object to write.
    indent : int, optional
        JSON indentation level (default 2).
    """
    path = str(path)
    parent = os.path.dirname(path)
    os.makedirs(parent, exist_ok=True)

    fd, tmp_path = tempfile.mkstemp(dir=parent, suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            json.dump(data, fh, indent=indent, ensure_ascii=False)
        os.replace(tmp_path, path)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


def dump_json(data, *, indent=2) -> str:
    """Serialise *data* the same way :func:`safe_write_json` does."""
    return json.dumps(data, indent=indent, ensure_ascii=False)


# ---------------------------------------------------------------------------
# Text folding
# ---------------------------------------------------------------------------

def fold_text(text: str) -> str:
    """Return *text* without accents and casefolded.

    Examples:
        "Luxúria" -> "luxuria"
        "ÉLAN"    -> "elan"
    """
    decomposed = unicodedata.normalize("NFKD", text)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.casefold()


def collation_key(text: str) -> tuple[str, str, str]:
    """Sort key approximating a locale-aware comparison.

    Primary order ignores accents and case, so accented words sit next to
    their plain forms.  Ties are broken by the accented form and then by
    case, with lowercase before uppercase.
    """
    return (fold_text(text), text.casefold(), text.swapcase())
