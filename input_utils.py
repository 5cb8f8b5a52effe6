from __future__ import annotations

import math
from datetime import date, datetime
from typing import Any, Optional


def coerce_float(value: Any) -> Optional[float]:
    """Lenient number parsing for form-style input.

    Accepts comma decimals; returns None for blanks, booleans, NaN, infinities
    and anything else that is not a finite number.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            fv = float(value)
        except Exception:
            return None
        return fv if math.isfinite(fv) else None
    text = str(value).strip()
    if not text:
        return None
    try:
        fv = float(text)
    except ValueError:
        try:
            fv = float(text.replace(",", "."))
        except ValueError:
            return None
    return fv if math.isfinite(fv) else None


def coerce_min_int(value: Any, minimum: int = 1, maximum: Optional[int] = None) -> int:
    fv = coerce_float(value)
    if fv is None or not fv:
        return minimum
    if maximum is not None and fv > maximum:
        return maximum
    return max(minimum, int(fv))


def clamp_hour(value: Any) -> int:
    fv = coerce_float(value)
    if fv is None:
        return 0
    return min(23, max(0, int(fv)))


def parse_iso_date(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    text = str(value).strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text[:10]).isoformat()
    except ValueError:
        return None


def clamp_percent(value: Any) -> int:
    fv = coerce_float(value)
    if fv is None:
        return 0
    return min(100, max(0, int(round(fv))))
