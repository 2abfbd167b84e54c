"""
Tolerant field extraction for untyped provider payloads.

Provider JSON is never assumed to be well-formed. Every access goes through
these helpers, which walk dotted paths, try candidate paths in order and
coerce values, returning a default instead of raising.
"""

import re
from datetime import datetime, timezone
from typing import Any, Optional

_MISSING = object()


def dig(obj: Any, path: str, default: Any = None) -> Any:
    """
    Walk a dotted path through dicts and lists.

    `dig(item, "teams.home.name")`, `dig(item, "players.0.name")`
    """
    current = obj
    for part in path.split("."):
        if isinstance(current, dict):
            current = current.get(part, _MISSING)
        elif isinstance(current, list) and part.isdigit():
            index = int(part)
            current = current[index] if index < len(current) else _MISSING
        else:
            return default
        if current is _MISSING or current is None:
            return default
    return current


def is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, dict)):
        return not value
    return False


def first_of(obj: Any, *paths: str, default: Any = None) -> Any:
    """Value at the first path that yields a non-empty value."""
    for path in paths:
        value = dig(obj, path)
        if not is_empty(value):
            return value
    return default


def as_str(value: Any, default: str = "") -> str:
    """Scalar to string; containers and booleans are not names or ids."""
    if isinstance(value, bool) or value is None:
        return default
    if isinstance(value, str):
        text = value.strip()
        return text or default
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return str(int(value)) if value.is_integer() else str(value)
    return default


def first_str(obj: Any, *paths: str, default: str = "") -> str:
    """First candidate path that yields a usable string."""
    for path in paths:
        text = as_str(dig(obj, path))
        if text:
            return text
    return default


def as_float(value: Any) -> Optional[float]:
    """Parse a number or numeric string; None if not a finite number."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if number != number or number in (float("inf"), float("-inf")):
        return None
    return number


def as_list(value: Any) -> list:
    return value if isinstance(value, list) else []


def as_dict(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def parse_start_time(value: Any) -> str:
    """
    Normalize a provider timestamp to ISO 8601 UTC (`...T10:00:00.000Z`).

    Accepts ISO strings (with `Z` or an offset), and epoch seconds or
    milliseconds. Anything else yields "".
    """
    parsed: Optional[datetime] = None

    if isinstance(value, (int, float)) and not isinstance(value, bool):
        seconds = value / 1000 if value > 1e11 else value
        try:
            parsed = datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return ""
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.isdigit():
            return parse_start_time(int(text))
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return ""
    else:
        return ""

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    parsed = parsed.astimezone(timezone.utc)
    return parsed.strftime("%Y-%m-%dT%H:%M:%S.") + f"{parsed.microsecond // 1000:03d}Z"


def slugify(text: str) -> str:
    """Lowercase, whitespace runs to hyphens."""
    return re.sub(r"\s+", "-", str(text).strip().lower())


def unwrap_response(payload: Any) -> list:
    """Unwrap a provider `{"response": [...]}` envelope into raw items."""
    if isinstance(payload, dict):
        items = payload.get("response")
        if isinstance(items, list):
            return items
        if isinstance(items, dict):
            return [items]
        return []
    if isinstance(payload, list):
        return payload
    return []
