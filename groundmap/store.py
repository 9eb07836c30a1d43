"""
Canonical store I/O.

The canonical set is a single JSON array of venue objects. It is read fully
at the start of a run and written fully at the end; the write goes to a
temporary file that replaces the document in one rename, so a failed write
never leaves a partial document behind.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List

from .errors import StoreError

logger = logging.getLogger(__name__)


def load_venues(path: Path) -> List[Dict]:
    """
    Load the canonical venue set.

    A missing file is an empty set (first run).

    Raises:
        StoreError: if the file cannot be read or is not a JSON array of objects
    """
    path = Path(path)
    if not path.exists():
        logger.info(f"No canonical store at {path}, starting empty")
        return []

    try:
        with open(path, encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        raise StoreError(f"Cannot read canonical store {path}: {e}") from e

    if not isinstance(data, list) or not all(isinstance(v, dict) for v in data):
        raise StoreError(f"Canonical store {path} is not a JSON array of objects")

    return data


def write_json_atomic(path: Path, data: Any, indent: int = 2) -> None:
    """
    Write JSON to `path` through a temporary file and an atomic rename.

    Raises:
        StoreError: if the document cannot be written
    """
    path = Path(path)
    tmp_name = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix='.tmp', dir=path.parent)
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=indent, ensure_ascii=False)
            f.write('\n')
        os.replace(tmp_name, path)
    except (OSError, TypeError, ValueError) as e:
        if tmp_name and os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise StoreError(f"Cannot write {path}: {e}") from e


def save_venues(path: Path, venues: List[Dict]) -> None:
    """Persist the canonical venue set (pretty-printed)."""
    write_json_atomic(path, venues)
    logger.info(f"Wrote {len(venues)} venues to {path}")
