"""
Small request helpers shared by the API route modules
"""
from flask import request
from flask_login import current_user

from backoffice.buisness.core.exceptions import ValidationError
from backoffice.buisness.core.validation import parse_datetime
from backoffice.data.core.user_info.user import ROLE_ADMIN, ROLE_SALES, ROLE_VIEWER

# Role sets used with require_role
ANY_ROLE = (ROLE_ADMIN, ROLE_SALES, ROLE_VIEWER)
SALES_ROLES = (ROLE_ADMIN, ROLE_SALES)
ADMIN_ONLY = (ROLE_ADMIN,)


def json_body():
    """The request's JSON object, or a ValidationError when there is none."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def user_id():
    return current_user.id if current_user.is_authenticated else None


def query_datetime(name):
    raw = request.args.get(name, '').strip()
    if not raw:
        return None
    parsed = parse_datetime(raw)
    if parsed is None:
        raise ValidationError.for_field(name, f"{name} is not a valid date")
    return parsed


def pagination_payload(pagination, serialize):
    return {
        'items': [serialize(entry) for entry in pagination.items],
        'page': pagination.page,
        'per_page': pagination.per_page,
        'pages': pagination.pages,
        'total': pagination.total,
    }
