"""
Logging Sanitizer Utility

Provides utilities to sanitize sensitive data before logging.
Prevents accidental logging of passwords, tokens, and customer contact details.
"""

from typing import Dict, Any
from werkzeug.datastructures import ImmutableMultiDict


# Fields that should never be logged
SENSITIVE_FIELDS = {
    'password',
    'password_confirm',
    'confirm_password',
    'current_password',
    'new_password',
    'password_hash',
    'secret',
    'token',
    'api_key',
    'csrf_token',
    'session_id',
    'credit_card',
    'card_number',
    'cvv',
    'tax_id',
}


def sanitize_dict(data: Dict[str, Any], redact_text: str = '[REDACTED]') -> Dict[str, Any]:
    """
    Sanitize a dictionary by replacing sensitive field values with redaction text.

    Nested dictionaries and lists of dictionaries (such as quote line items) are
    sanitized recursively.

    Example:
        >>> sanitize_dict({'username': 'admin', 'password': 'secret123'})
        {'username': 'admin', 'password': '[REDACTED]'}
    """
    if not data:
        return data

    sanitized = {}
    for key, value in data.items():
        if key.lower() in SENSITIVE_FIELDS:
            sanitized[key] = redact_text
        elif isinstance(value, dict):
            sanitized[key] = sanitize_dict(value, redact_text)
        elif isinstance(value, list):
            sanitized[key] = [
                sanitize_dict(entry, redact_text) if isinstance(entry, dict) else entry
                for entry in value
            ]
        else:
            sanitized[key] = value

    return sanitized


def sanitize_form_data(form_data: ImmutableMultiDict, redact_text: str = '[REDACTED]') -> Dict[str, Any]:
    """Sanitize Flask request.form data for safe logging."""
    return sanitize_dict(dict(form_data), redact_text)


def sanitize_request_payload(request, redact_text: str = '[REDACTED]') -> Dict[str, Any]:
    """
    Sanitize whatever body a request carries, JSON first and form data second.
    """
    payload = request.get_json(silent=True)
    if isinstance(payload, dict):
        return sanitize_dict(payload, redact_text)
    return sanitize_form_data(request.form, redact_text)
