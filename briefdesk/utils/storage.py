"""
Storage utilities
Helpers for saving and loading JSON files, plus the versioned envelope
used for persisted collections
"""
import json
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from briefdesk.utils.log import get_logger

logger = get_logger(__name__)


def save_json(path: Path, data: Any) -> None:
    """
    Save a JSON file

    The file is written next to its target and moved into place, so a
    reader never sees a half-written document.

    Args:
        path: destination path
        data: JSON-serialisable data
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)
        os.replace(tmp, path)
    except BaseException:
        Path(tmp).unlink(missing_ok=True)
        raise


def load_json(path: Path) -> Any:
    """
    Load a JSON file

    Args:
        path: file to read

    Returns:
        the decoded data

    Raises:
        FileNotFoundError: the file does not exist
        json.JSONDecodeError: the file is not valid JSON
    """
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    return json.loads(path.read_text(encoding="utf-8"))


# =========================
# Versioned envelope
# =========================
Migration = Callable[[Any], Any]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def write_envelope(path: Path, version: int, key: str, items: Any) -> datetime:
    """
    Save a collection wrapped in {"version", "saved_at", key}

    Returns:
        the saved_at timestamp that was written
    """
    saved_at = utc_now()
    save_json(path, {"version": version, "saved_at": saved_at.isoformat(), key: items})
    return saved_at


def _parse_saved_at(data: Any) -> Optional[datetime]:
    if not isinstance(data, dict) or not data.get("saved_at"):
        return None
    try:
        return datetime.fromisoformat(data["saved_at"])
    except (TypeError, ValueError):
        return None


def read_saved_at(path: Path) -> Optional[datetime]:
    """saved_at of the envelope currently on disk, None if absent or unreadable."""
    try:
        return _parse_saved_at(load_json(path))
    except (FileNotFoundError, json.JSONDecodeError):
        return None


def read_envelope(
    path: Path,
    version: int,
    key: str,
    migrations: Dict[int, Migration],
    container: type = list,
) -> tuple[Any, Optional[datetime]]:
    """
    Load a collection and bring it up to the current version

    A bare JSON document (no envelope) is treated as version 1.
    migrations[n] turns version-n items into version-(n+1) items.
    The migrated items must be an instance of container.

    Returns:
        (items, saved_at); ([], None) when the file does not exist

    Raises:
        json.JSONDecodeError: the file is not valid JSON
        ValueError: the stored version is newer than this code, has no migration,
            or the items are not a container
    """
    try:
        data = load_json(path)
    except FileNotFoundError:
        return [], None

    if isinstance(data, dict) and "version" in data:
        stored_version = data["version"]
        items = data.get(key, [])
        saved_at = _parse_saved_at(data)
    else:
        stored_version = 1
        items = data
        saved_at = None

    if not isinstance(stored_version, int) or stored_version > version:
        raise ValueError(f"Unsupported storage version {stored_version!r} in {path}")

    while stored_version < version:
        migrate = migrations.get(stored_version)
        if migrate is None:
            raise ValueError(f"No migration from version {stored_version} in {path}")
        items = migrate(items)
        logger.info("storage.migrated", path=str(path), from_version=stored_version)
        stored_version += 1

    if not isinstance(items, container):
        raise ValueError(f"Expected {container.__name__} under {key!r} in {path}, got {type(items).__name__}")

    return items, saved_at
