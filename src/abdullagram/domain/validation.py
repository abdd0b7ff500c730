from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from abdullagram.domain.errors import ValidationError


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC so they compare with aware ones."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def require_text(value: Optional[str], field: str) -> str:
    if value is None or not value.strip():
        raise ValidationError(f"{field} cannot be empty.")
    return value


def require_past(value: datetime, field: str) -> datetime:
    value = as_utc(value)
    if value > utcnow():
        raise ValidationError(f"{field} cannot be in the future.")
    return value


def require_optional_past(value: Optional[datetime], field: str) -> Optional[datetime]:
    if value is None:
        return None
    return require_past(value, field)


def require_not_before(value: datetime, lower: datetime, field: str, lower_field: str) -> datetime:
    value = as_utc(value)
    if value < as_utc(lower):
        raise ValidationError(f"{field} cannot be earlier than {lower_field}.")
    return value


def require_non_negative(value: float, field: str) -> float:
    if value < 0:
        raise ValidationError(f"{field} cannot be negative.")
    return value
