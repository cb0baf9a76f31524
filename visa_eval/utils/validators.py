"""
Utility functions for input validation and score handling
"""
from datetime import date, datetime
from enum import Enum
from typing import Any, Iterable, List, Optional, Union

from ..errors import ValidationInputError


def require_fields(data: Any, fields: Iterable[str], evaluator: Optional[str] = None) -> None:
    """
    Ensure every hard-required input field is present

    Args:
        data: Object exposing ``get(key)`` (applicant data or evaluation context)
        fields: Field names that must be present and non-empty
        evaluator: Name of the evaluator, included in the error details

    Raises:
        ValidationInputError: listing every missing field
    """
    missing = [field for field in fields if is_blank(data.get(field))]
    if missing:
        raise ValidationInputError(missing, evaluator=evaluator)


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str) and not value.strip():
        return True
    return False


def clamp_score(score: float, minimum: float = 0, maximum: float = 100) -> float:
    """Clamp a score into the [minimum, maximum] range"""
    return max(minimum, min(maximum, score))


def to_score(score: float) -> int:
    """Round and clamp a score into an integer in [0, 100]"""
    return int(round(clamp_score(score)))


def to_number(value: Any, default: float = 0) -> float:
    """Coerce loosely typed numeric input, falling back to a default"""
    if value is None or isinstance(value, bool):
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def normalize_code(value: Any) -> str:
    """Normalize a visa or country code (strip and upper-case)"""
    if value is None:
        return ""
    return str(value).strip().upper()


def normalize_key(value: Any) -> str:
    """Normalize a lookup key such as an education level (strip and lower-case)"""
    if value is None:
        return ""
    return str(value).strip().lower()


def to_date(value: Union[date, datetime, str, None]) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def days_between(start: Union[date, datetime, str], end: Union[date, datetime, str]) -> int:
    """Calendar days from start to end"""
    return (to_date(end) - to_date(start)).days


def unique(items: Iterable[Any]) -> List[Any]:
    """Deduplicate while keeping first-seen order"""
    seen = set()
    result = []
    for item in items:
        if item not in seen:
            seen.add(item)
            result.append(item)
    return result


def to_list(value: Any) -> List[Any]:
    """Value coerced to a list (None becomes an empty list, scalars a single item)"""
    if value is None:
        return []
    if isinstance(value, (list, tuple, set, frozenset)):
        return list(value)
    return [value]


def enum_value(value: Any) -> str:
    """Upper-cased string value of an enum member or raw string"""
    if value is None:
        return ""
    if isinstance(value, Enum):
        value = value.value
    return str(value).strip().upper()
