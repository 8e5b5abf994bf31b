"""
Date rules for quotations: validity-window validation, expiry classification
and the suggested default deadline. All functions are pure; ``now`` is passed
in by the caller.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from backoffice.buisness.core.validation import parse_datetime, require_datetime

DEFAULT_VALIDITY_DAYS = 30
MIN_VALIDITY_DAYS = 1
MAX_VALIDITY_DAYS = 365
EXPIRY_WARNING_DAYS = 3

EXPIRED = 'expired'
EXPIRING_SOON = 'expiring_soon'
EXPIRING_WARNING = 'expiring_warning'
VALID = 'valid'


@dataclass
class DateValidationResult:
    is_valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {'is_valid': self.is_valid, 'errors': self.errors, 'warnings': self.warnings}


@dataclass(frozen=True)
class ExpiryStatus:
    status: str
    days_left: int
    message: str

    def to_dict(self) -> dict:
        return {'status': self.status, 'days_left': self.days_left, 'message': self.message}


def validate_dates(
    quote_date,
    valid_until,
    now: datetime,
    *,
    min_validity_days: int = MIN_VALIDITY_DAYS,
    max_validity_days: int = MAX_VALIDITY_DAYS,
) -> DateValidationResult:
    errors = []
    warnings = []

    q_date = parse_datetime(quote_date)
    v_date = parse_datetime(valid_until)
    if q_date is None:
        errors.append("Invalid quote date")
    if v_date is None:
        errors.append("Invalid valid-until date")
    if errors:
        return DateValidationResult(False, errors, warnings)

    window = v_date - q_date
    if v_date <= q_date:
        errors.append("The valid-until date must be after the quote date")
    elif window < timedelta(days=min_validity_days):
        errors.append(f"The quote must be valid for at least {min_validity_days} day(s)")

    if window > timedelta(days=max_validity_days):
        warnings.append(
            f"The quote will be valid for {window.days} days (recommended maximum: {max_validity_days})"
        )

    remaining = v_date - now
    if remaining <= timedelta(0):
        errors.append("The quote would already be expired")
    elif remaining < timedelta(days=EXPIRY_WARNING_DAYS):
        days = math.ceil(remaining / timedelta(days=1))
        warnings.append(f"The quote expires in {days} day{'s' if days != 1 else ''}")

    return DateValidationResult(not errors, errors, warnings)


def days_until_expiry(valid_until: datetime, now: datetime) -> int:
    return math.ceil((valid_until - now) / timedelta(days=1))


def get_expiry_status(valid_until, now: datetime) -> ExpiryStatus:
    valid_until = require_datetime(valid_until, 'valid_until')
    days_left = days_until_expiry(valid_until, now)

    if days_left <= 0:
        return ExpiryStatus(EXPIRED, days_left, "Quote expired")
    if days_left <= 3:
        return ExpiryStatus(EXPIRING_SOON, days_left, f"Expires in {days_left} day{'s' if days_left != 1 else ''}")
    if days_left <= 7:
        return ExpiryStatus(EXPIRING_WARNING, days_left, f"Expires in {days_left} days")
    return ExpiryStatus(VALID, days_left, f"Valid for {days_left} days")


def suggest_valid_until(quote_date, default_days: int = DEFAULT_VALIDITY_DAYS) -> datetime:
    return require_datetime(quote_date, 'quote_date') + timedelta(days=default_days)
