"""
Field coercion helpers shared by the business managers.

Each helper either returns a clean Python value or raises a
:class:`ValidationError` naming the offending field.
"""

import math
from datetime import date, datetime, timezone

from backoffice.buisness.core.exceptions import ValidationError


def require_text(value, field, max_length=None):
    if value is None or not isinstance(value, str) or not value.strip():
        raise ValidationError.for_field(field, f"{field} is required")
    value = value.strip()
    if max_length and len(value) > max_length:
        raise ValidationError.for_field(field, f"{field} must be at most {max_length} characters")
    return value


def optional_text(value, field, max_length=None):
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return require_text(value, field, max_length=max_length)


def coerce_number(value, field, *, positive=False, non_negative=False, non_zero=False, default=None):
    """
    Convert ``value`` to a finite float.

    Numeric strings are accepted because form posts and some JSON clients send
    them; booleans are rejected even though they are ints.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        if default is not None:
            return float(default)
        raise ValidationError.for_field(field, f"{field} is required")
    if isinstance(value, bool):
        raise ValidationError.for_field(field, f"{field} must be a number")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError.for_field(field, f"{field} must be a number")
    if not math.isfinite(number):
        raise ValidationError.for_field(field, f"{field} must be a finite number")
    if positive and number <= 0:
        raise ValidationError.for_field(field, f"{field} must be greater than 0")
    if non_negative and number < 0:
        raise ValidationError.for_field(field, f"{field} cannot be negative")
    if non_zero and number == 0:
        raise ValidationError.for_field(field, f"{field} cannot be zero")
    return number


def coerce_id(value, field):
    if isinstance(value, bool):
        raise ValidationError.for_field(field, f"{field} must be an integer id")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError.for_field(field, f"{field} must be an integer id")
    if number <= 0:
        raise ValidationError.for_field(field, f"{field} must be a positive id")
    return number


def to_naive_utc(value):
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def parse_datetime(value):
    """
    Parse a date, datetime or ISO-8601 string into a naive UTC datetime.

    Returns ``None`` when the value cannot be parsed.
    """
    if isinstance(value, datetime):
        return to_naive_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        try:
            return to_naive_utc(datetime.fromisoformat(text))
        except ValueError:
            return None
    return None


def require_datetime(value, field):
    parsed = parse_datetime(value)
    if parsed is None:
        raise ValidationError.for_field(field, f"{field} is not a valid date")
    return parsed


def money(value):
    return round(float(value or 0.0), 2)
