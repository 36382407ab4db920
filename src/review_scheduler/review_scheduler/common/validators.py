from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Iterable, Optional, TypeVar

from ..core.exceptions import ValidationError

E = TypeVar("E", bound=Enum)


def require_non_empty(value: Optional[str], field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_positive(value: int, field_name: str) -> int:
    if value is None or int(value) <= 0:
        raise ValidationError(f"{field_name} must be a positive number")
    return int(value)


def require_time_range(start: datetime, end: datetime) -> None:
    if start >= end:
        raise ValidationError("Invalid time range: start must be before end")


def unique_ids(values: Optional[Iterable[str]]) -> tuple[str, ...]:
    """Drop blanks and duplicates while keeping first-seen order."""
    seen: dict[str, None] = {}
    for v in values or ():
        v = str(v).strip()
        if v:
            seen.setdefault(v, None)
    return tuple(seen)


def require_enum(enum_cls: type[E], value: object, field_name: str) -> E:
    try:
        return enum_cls(str(value or "").strip().upper())
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(f"{field_name} must be one of: {allowed}")
