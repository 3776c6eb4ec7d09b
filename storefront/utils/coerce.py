# storefront/utils/coerce.py
"""
The file-backed store gives every cell back as a string. These helpers turn
those cells into Python values.
"""
from datetime import datetime
from typing import Any, Optional
import json

_TRUTHY = ("1", "true", "yes", "y", "t")


def as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str):
        return value.strip().lower() in _TRUTHY
    return False


def as_float(value: Any, default: float = 0.0) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def as_datetime(value: Any) -> Optional[datetime]:
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value))
    except ValueError:
        # pandas Timestamp prints like '2023-01-01 00:00:00'
        try:
            return datetime.strptime(str(value), "%Y-%m-%d %H:%M:%S")
        except ValueError:
            return None


def load_json(value: Any, default: Any = None) -> Any:
    """Decode a JSON cell. Already-decoded values pass through; blanks give `default`."""
    if value is None or value == "":
        return default
    if not isinstance(value, str):
        return value
    try:
        return json.loads(value)
    except ValueError:
        return default


def dump_json(value: Any) -> str:
    if value is None:
        return ""
    return json.dumps(value, ensure_ascii=False)
