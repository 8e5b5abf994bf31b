from __future__ import annotations

from datetime import datetime
from enum import Enum

from backoffice.buisness.core.exceptions import StateError, ValidationError


class QuoteStatus(str, Enum):
    DRAFT = 'draft'
    SENT = 'sent'
    ACCEPTED = 'accepted'
    REJECTED = 'rejected'
    EXPIRED = 'expired'
    CONVERTED = 'converted'

    @classmethod
    def parse(cls, value) -> 'QuoteStatus':
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            allowed = ', '.join(status.value for status in cls)
            raise ValidationError.for_field('status', f"Unknown quote status '{value}' (expected one of: {allowed})")


INITIAL_STATUSES = frozenset({QuoteStatus.DRAFT, QuoteStatus.SENT})
TERMINAL_STATUSES = frozenset({QuoteStatus.REJECTED, QuoteStatus.CONVERTED})
EDITABLE_STATUSES = frozenset({QuoteStatus.DRAFT, QuoteStatus.SENT})

# Transitions a user may request; expiry is applied only by the sweep
USER_TRANSITIONS = {
    QuoteStatus.DRAFT: frozenset({QuoteStatus.SENT, QuoteStatus.REJECTED}),
    QuoteStatus.SENT: frozenset({QuoteStatus.ACCEPTED, QuoteStatus.REJECTED}),
    QuoteStatus.ACCEPTED: frozenset({QuoteStatus.CONVERTED}),
    QuoteStatus.REJECTED: frozenset(),
    QuoteStatus.EXPIRED: frozenset(),
    QuoteStatus.CONVERTED: frozenset(),
}

_missing = set(QuoteStatus) - set(USER_TRANSITIONS)
if _missing:
    raise RuntimeError(f"Quote transition table has no entry for: {sorted(s.value for s in _missing)}")


def can_quote_be_accepted(status, valid_until: datetime, now: datetime) -> bool:
    return QuoteStatus.parse(status) is QuoteStatus.SENT and now <= valid_until


def can_quote_be_converted(status, valid_until: datetime, now: datetime) -> bool:
    return QuoteStatus.parse(status) is QuoteStatus.ACCEPTED and now <= valid_until


def check_transition(current, target, valid_until: datetime, now: datetime) -> QuoteStatus:
    """
    Validate a user-requested status change.

    Returns:
        The target status

    Raises:
        StateError: the transition is not allowed or its guard fails
    """
    current = QuoteStatus.parse(current)
    target = QuoteStatus.parse(target)

    if target is QuoteStatus.EXPIRED:
        raise StateError("Quotes expire automatically; 'expired' cannot be set manually")
    if target not in USER_TRANSITIONS[current]:
        raise StateError(f"Cannot change quote status from '{current.value}' to '{target.value}'")
    if target is QuoteStatus.ACCEPTED and not can_quote_be_accepted(current, valid_until, now):
        raise StateError("The quote validity period has ended; it can no longer be accepted")
    if target is QuoteStatus.CONVERTED and not can_quote_be_converted(current, valid_until, now):
        raise StateError("The quote validity period has ended; it can no longer be converted")
    return target
