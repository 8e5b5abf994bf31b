"""
JSON API blueprint. Business errors raised anywhere below a view are turned
into the ``{"success": false, "error": ...}`` envelope here.
"""
from flask import Blueprint, jsonify, request
from werkzeug.exceptions import HTTPException

from backoffice import db
from backoffice.buisness.core.exceptions import BackOfficeError
from backoffice.utils.logger import get_logger
from backoffice.utils.logging_sanitizer import sanitize_request_payload

from backoffice.presentation.routes.api.inventory import register_inventory_routes
from backoffice.presentation.routes.api.quotes import register_quote_routes
from backoffice.presentation.routes.api.finance import register_finance_routes
from backoffice.presentation.routes.api.invoices import register_invoice_routes
from backoffice.presentation.routes.api.payroll import register_payroll_routes
from backoffice.presentation.routes.api.reports import register_report_routes

logger = get_logger("backoffice.routes.api")

api_bp = Blueprint('api', __name__, url_prefix='/api')


@api_bp.errorhandler(BackOfficeError)
def handle_business_error(error):
    db.session.rollback()
    logger.warning(
        f"{request.method} {request.path} rejected ({error.status_code}): {error.message} "
        f"payload={sanitize_request_payload(request)}"
    )
    return jsonify(error.to_dict()), error.status_code


@api_bp.errorhandler(Exception)
def handle_unexpected_error(error):
    if isinstance(error, HTTPException):
        return jsonify({'success': False, 'error': error.description}), error.code
    db.session.rollback()
    logger.error(f"Unhandled error on {request.method} {request.path}: {error}", exc_info=True)
    return jsonify({'success': False, 'error': 'Internal server error'}), 500


# Register all route modules
for register in (
    register_inventory_routes,
    register_quote_routes,
    register_finance_routes,
    register_invoice_routes,
    register_payroll_routes,
    register_report_routes,
):
    try:
        register(api_bp)
        logger.debug(f"Registered {register.__name__}")
    except Exception as e:
        logger.error(f"Failed to register {register.__name__}: {e}", exc_info=True)
        raise
