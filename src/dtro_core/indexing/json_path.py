"""Lenient accessors for nested JSON payloads.

Missing keys, ``None`` values and non-object intermediate values all
resolve to ``None`` (or an empty list), so callers can read optional
parts of a DTRO payload without guarding every level.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from ..models.dtro import parse_datetime


def get_path(data: Any, path: str) -> Any:
    """
    Read a dotted path such as ``"source.provision"``.

    Returns:
        The value at the path, or None if any segment is missing.
    """
    current = data
    for key in path.split("."):
        if not isinstance(current, dict):
            return None
        current = current.get(key)
        if current is None:
            return None
    return current


def has_path(data: Any, path: str) -> bool:
    """Check whether the last segment of ``path`` exists as a key."""
    parent_path, _, key = path.rpartition(".")
    parent = get_path(data, parent_path) if parent_path else data
    return isinstance(parent, dict) and key in parent


def get_object(data: Any, path: str) -> Optional[Dict[str, Any]]:
    """Read a path expected to hold an object."""
    value = get_path(data, path)
    return value if isinstance(value, dict) else None


def get_list(data: Any, path: str) -> List[Any]:
    """Read a path expected to hold a list; anything else gives ``[]``."""
    value = get_path(data, path)
    return value if isinstance(value, list) else []


def get_objects(data: Any, path: str) -> List[Dict[str, Any]]:
    """Read a list at ``path`` keeping only its object items."""
    return [item for item in get_list(data, path) if isinstance(item, dict)]


def get_str(data: Any, path: str) -> Optional[str]:
    value = get_path(data, path)
    return value if isinstance(value, str) else None


def get_int(data: Any, path: str, default: int = 0) -> int:
    """Read an integer, accepting numeric strings. Falls back to ``default``."""
    value = get_path(data, path)
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return default
    return default


def get_datetime(data: Any, path: str) -> Optional[datetime]:
    """Read an ISO-8601 timestamp; unparseable values give None."""
    return parse_datetime(get_path(data, path))


def distinct(values) -> list:
    """Drop ``None`` and duplicates, keeping first-seen order."""
    seen = set()
    result = []
    for value in values:
        if value is None or value in seen:
            continue
        seen.add(value)
        result.append(value)
    return result
