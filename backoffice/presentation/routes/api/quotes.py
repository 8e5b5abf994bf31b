"""
Quote API routes - CRUD, status changes, conversion and the expiry sweep
"""
from datetime import datetime

from flask import current_app, jsonify, request
from flask_login import current_user

from backoffice.auth import require_role
from backoffice.buisness.core.exceptions import ValidationError
from backoffice.buisness.core.transaction import run_in_transaction
from backoffice.buisness.core.validation import parse_datetime
from backoffice.buisness.quotes.quote_dates import DEFAULT_VALIDITY_DAYS, suggest_valid_until, validate_dates
from backoffice.buisness.quotes.quote_manager import QuoteManager
from backoffice.presentation.routes.api.helpers import ADMIN_ONLY, ANY_ROLE, SALES_ROLES, json_body, user_id
from backoffice.services.quotes.quote_service import QuoteService
from backoffice.utils.logger import get_logger

logger = get_logger("backoffice.routes.api.quotes")


def register_quote_routes(api_bp):
    """Register all quote routes to the API blueprint"""

    @api_bp.route('/quotes', methods=['GET'])
    @require_role(*ANY_ROLE)
    def quotes_list():
        quotes = QuoteService.list_quotes(
            status=request.args.get('status', '').strip() or None,
            search=request.args.get('search', '').strip() or None,
        )
        now = datetime.utcnow()
        return jsonify([QuoteService.quote_to_dict(quote, now) for quote in quotes])

    @api_bp.route('/quotes', methods=['POST'])
    @require_role(*SALES_ROLES)
    def quotes_create():
        data = json_body()
        # Accept both {quote: {...}, items: [...]} and a flat object
        if isinstance(data.get('quote'), dict):
            data = dict(data['quote'], items=data.get('items'))
        manager = QuoteManager(user_id())
        quote = run_in_transaction(lambda: manager.create_quote(data))
        logger.info(f"Quote {quote.quote_number} created by {current_user.username}")
        return jsonify(QuoteService.quote_to_dict(quote, include_items=True)), 201

    @api_bp.route('/quotes/stats', methods=['GET'])
    @require_role(*ANY_ROLE)
    def quotes_stats():
        return jsonify(QuoteService.get_stats())

    @api_bp.route('/quotes/update-expired', methods=['POST'])
    @require_role(*ADMIN_ONLY)
    def quotes_update_expired():
        manager = QuoteManager(user_id())
        expired_ids = run_in_transaction(lambda: manager.check_expired_quotes(datetime.utcnow()))
        return jsonify({'success': True, 'updated': len(expired_ids), 'quote_ids': expired_ids})

    @api_bp.route('/quotes/validate-dates', methods=['POST'])
    @require_role(*ANY_ROLE)
    def quotes_validate_dates():
        data = json_body()
        now = datetime.utcnow()
        quote_date = data.get('quote_date') or now
        valid_until = data.get('valid_until')
        suggested = None
        # An unparseable quote_date is reported by validate_dates, not suggested from
        if not valid_until and parse_datetime(quote_date) is not None:
            days = current_app.config.get('QUOTE_DEFAULT_VALIDITY_DAYS', DEFAULT_VALIDITY_DAYS)
            suggested = valid_until = suggest_valid_until(quote_date, days)
        payload = validate_dates(quote_date, valid_until, now).to_dict()
        if suggested is not None:
            payload['suggested_valid_until'] = suggested.isoformat()
        return jsonify(payload)

    @api_bp.route('/quotes/<int:quote_id>', methods=['GET'])
    @require_role(*ANY_ROLE)
    def quotes_detail(quote_id):
        quote = QuoteManager().get_quote(quote_id)
        return jsonify(QuoteService.quote_to_dict(quote, include_items=True))

    @api_bp.route('/quotes/<int:quote_id>/items', methods=['GET'])
    @require_role(*ANY_ROLE)
    def quotes_items(quote_id):
        quote = QuoteManager().get_quote(quote_id)
        return jsonify([item.to_dict(include_audit_fields=False) for item in quote.items])

    @api_bp.route('/quotes/<int:quote_id>', methods=['PUT'])
    @require_role(*SALES_ROLES)
    def quotes_update(quote_id):
        data = json_body()
        if isinstance(data.get('quote'), dict):
            data = dict(data['quote'], **({'items': data['items']} if 'items' in data else {}))
        manager = QuoteManager(user_id())
        quote = run_in_transaction(lambda: manager.update_quote(quote_id, data))
        return jsonify(QuoteService.quote_to_dict(quote, include_items=True))

    @api_bp.route('/quotes/<int:quote_id>', methods=['DELETE'])
    @require_role(*SALES_ROLES)
    def quotes_delete(quote_id):
        manager = QuoteManager(user_id())
        run_in_transaction(lambda: manager.delete_quote(quote_id))
        return jsonify({'success': True})

    @api_bp.route('/quotes/<int:quote_id>/status', methods=['PATCH'])
    @require_role(*SALES_ROLES)
    def quotes_change_status(quote_id):
        data = json_body()
        if not data.get('status'):
            raise ValidationError.for_field('status', "status is required")
        manager = QuoteManager(user_id())
        quote = run_in_transaction(
            lambda: manager.change_status(quote_id, data['status'], payment_method=data.get('payment_method'))
        )
        return jsonify(QuoteService.quote_to_dict(quote))

    @api_bp.route('/quotes/<int:quote_id>/convert-to-sale', methods=['POST'])
    @require_role(*SALES_ROLES)
    def quotes_convert_to_sale(quote_id):
        data = request.get_json(silent=True) or {}
        manager = QuoteManager(user_id())
        sale = run_in_transaction(
            lambda: manager.convert_to_sale(quote_id, payment_method=data.get('payment_method'))
        )
        logger.info(f"Quote {quote_id} converted to sale {sale.sale_number} by {current_user.username}")
        return jsonify({'success': True, 'sale': sale.to_dict(include_items=True)}), 201
