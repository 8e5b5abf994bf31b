"""
Test the logging sanitizer utility.
Passwords, tokens and customer tax ids must never reach the log files.
"""

from werkzeug.datastructures import ImmutableMultiDict

from backoffice.utils.logging_sanitizer import (
    SENSITIVE_FIELDS,
    sanitize_dict,
    sanitize_form_data,
    sanitize_request_payload,
)


def test_sanitize_dict():
    """Test dictionary sanitization"""
    result = sanitize_dict({'username': 'admin', 'password': 'secret123', 'email': 'admin@example.com'})
    assert result['username'] == 'admin', "Username should not be redacted"
    assert result['password'] == '[REDACTED]', "Password should be redacted"
    assert result['email'] == 'admin@example.com', "Email should not be redacted"

    result = sanitize_dict({'Password': 'a', 'PASSWORD': 'b', 'Tax_Id': 'c'})
    assert result == {'Password': '[REDACTED]', 'PASSWORD': '[REDACTED]', 'Tax_Id': '[REDACTED]'}, \
        "Field matching should ignore case"


def test_nested_payloads():
    """Quote bodies nest customer data and item lists"""
    payload = {
        'quote': {'customer_name': 'Acme', 'tax_id': 'RFC123'},
        'items': [{'inventory_id': 1, 'quantity': 2}, 'not-a-dict'],
        'token': 'abc',
    }
    result = sanitize_dict(payload)
    assert result['quote'] == {'customer_name': 'Acme', 'tax_id': '[REDACTED]'}
    assert result['items'] == [{'inventory_id': 1, 'quantity': 2}, 'not-a-dict']
    assert result['token'] == '[REDACTED]'
    assert payload['quote']['tax_id'] == 'RFC123', "The input must not be modified"


def test_empty_input_is_returned_unchanged():
    assert sanitize_dict({}) == {}
    assert sanitize_dict(None) is None


def test_sanitize_form_data():
    """Test Flask form data sanitization"""
    form_data = ImmutableMultiDict([
        ('username', 'admin'),
        ('password', 'secret123'),
        ('csrf_token', 'tok'),
    ])
    result = sanitize_form_data(form_data)
    assert result == {'username': 'admin', 'password': '[REDACTED]', 'csrf_token': '[REDACTED]'}


def test_sanitize_request_payload(app):
    with app.test_request_context('/login', method='POST', json={'username': 'a', 'password': 'b'}):
        from flask import request
        assert sanitize_request_payload(request) == {'username': 'a', 'password': '[REDACTED]'}

    with app.test_request_context('/login', method='POST', data={'username': 'a', 'new_password': 'b'}):
        from flask import request
        assert sanitize_request_payload(request, redact_text='***') == {'username': 'a', 'new_password': '***'}


def test_all_sensitive_fields():
    """Verify all sensitive fields are properly configured"""
    result = sanitize_dict({field: f"sensitive_{field}_value" for field in SENSITIVE_FIELDS})
    for field in SENSITIVE_FIELDS:
        assert result[field] == '[REDACTED]', f"Field '{field}' should be redacted"
