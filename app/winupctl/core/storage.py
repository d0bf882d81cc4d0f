"""JSON document persistence shared by the cache, history and hash database.

Every persisted document is read whole, mutated in memory and written back
whole. Writes go to a temporary file in the same directory followed by
os.replace(), so an interrupted write never leaves a half-written document
behind. There is no locking: concurrent processes are unsupported and the
last writer wins.
"""

import json
import logging
import os
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Any

logger = logging.getLogger(__name__)


class DocumentError(Exception):
    """Raised when a JSON document cannot be written."""


def read_json_document(path: Path) -> Any | None:
    """Read and parse a JSON document.

    Missing, empty, unreadable and corrupt files all yield None. Corruption
    is logged as a warning so that the caller can fall back to defaults.

    Args:
        path: Path to the JSON file.

    Returns:
        Parsed JSON value, or None if the document is unavailable.
    """
    if not path.exists():
        return None

    try:
        text = path.read_text(encoding="utf-8-sig")
    except OSError as e:
        logger.warning("Failed to read %s: %s", path, e)
        return None

    if not text.strip():
        return None

    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        logger.warning("Corrupt JSON document %s: %s", path, e)
        return None


def write_json_document(path: Path, data: Any) -> Path:
    """Serialize data and atomically replace the document at path.

    Args:
        path: Destination file. Parent directories are created.
        data: JSON-serializable value.

    Returns:
        Path that was written.

    Raises:
        DocumentError: If the file cannot be written.
    """
    tmp_path: Path | None = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            dir=path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            json.dump(data, f, indent=2, ensure_ascii=False)
            f.write("\n")
        os.replace(str(tmp_path), str(path))
    except (OSError, TypeError, ValueError) as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise DocumentError(f"Failed to write {path}: {e}") from e

    return path
