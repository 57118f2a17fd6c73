from __future__ import annotations

from typing import Any, Optional

from ..core.exceptions import ValidationError


def require_positive_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} is invalid")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} is invalid")
    if number <= 0 or (isinstance(value, float) and value != number):
        raise ValidationError(f"{field_name} is invalid")
    return number


def optional_text(value: Any, field_name: str, max_len: int) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be text")
    v = value.strip()
    if not v:
        return None
    if len(v) > max_len:
        raise ValidationError(f"{field_name} must be at most {max_len} characters")
    return v
