"""
Invoice API routes - receivables, payments and the overdue sweep
"""
from datetime import datetime

from flask import jsonify, request

from backoffice.auth import require_role
from backoffice.buisness.core.transaction import run_in_transaction
from backoffice.buisness.finance.aggregation import outstanding_invoices, receivables_summary
from backoffice.buisness.finance.invoice_manager import InvoiceManager
from backoffice.data.finance.invoice import INVOICE_STATUSES, Invoice
from backoffice.buisness.core.exceptions import ValidationError
from backoffice.presentation.routes.api.helpers import ADMIN_ONLY, ANY_ROLE, SALES_ROLES, json_body, user_id
from backoffice.utils.logger import get_logger

logger = get_logger("backoffice.routes.api.invoices")


def register_invoice_routes(api_bp):
    """Register invoice and accounts-receivable routes to the API blueprint"""

    @api_bp.route('/invoices', methods=['GET'])
    @require_role(*ANY_ROLE)
    def invoices_list():
        query = Invoice.query
        status = request.args.get('status', '').strip()
        if status:
            if status not in INVOICE_STATUSES:
                raise ValidationError.for_field('status', f"Unknown invoice status '{status}'")
            query = query.filter_by(status=status)
        invoices = query.order_by(Invoice.issue_date.desc(), Invoice.id.desc()).all()
        return jsonify([invoice.to_dict() for invoice in invoices])

    @api_bp.route('/invoices', methods=['POST'])
    @require_role(*SALES_ROLES)
    def invoices_create():
        data = json_body()
        manager = InvoiceManager(user_id())
        invoice = run_in_transaction(lambda: manager.create_invoice(data))
        return jsonify(invoice.to_dict(include_items=True)), 201

    @api_bp.route('/invoices/update-overdue', methods=['POST'])
    @require_role(*ADMIN_ONLY)
    def invoices_update_overdue():
        manager = InvoiceManager(user_id())
        overdue_ids = run_in_transaction(lambda: manager.mark_overdue_invoices(datetime.utcnow()))
        return jsonify({'success': True, 'updated': len(overdue_ids), 'invoice_ids': overdue_ids})

    @api_bp.route('/invoices/<int:invoice_id>', methods=['GET'])
    @require_role(*ANY_ROLE)
    def invoices_detail(invoice_id):
        invoice = InvoiceManager().get_invoice(invoice_id)
        return jsonify(invoice.to_dict(include_items=True))

    @api_bp.route('/invoices/<int:invoice_id>/payments', methods=['POST'])
    @require_role(*SALES_ROLES)
    def invoices_register_payment(invoice_id):
        data = json_body()
        manager = InvoiceManager(user_id())
        payment = run_in_transaction(lambda: manager.register_payment(invoice_id, data))
        invoice = payment.invoice
        return jsonify({
            'success': True,
            'payment': payment.to_dict(include_audit_fields=False),
            'invoice': invoice.to_dict(),
        }), 201

    @api_bp.route('/invoices/<int:invoice_id>/cancel', methods=['POST'])
    @require_role(*ADMIN_ONLY)
    def invoices_cancel(invoice_id):
        manager = InvoiceManager(user_id())
        invoice = run_in_transaction(lambda: manager.cancel_invoice(invoice_id))
        return jsonify(invoice.to_dict())

    @api_bp.route('/accounts-receivable/overdue', methods=['GET'])
    @require_role(*ANY_ROLE)
    def receivables_overdue():
        now = datetime.utcnow()
        overdue = [
            invoice for invoice in outstanding_invoices()
            if invoice.due_date is not None and invoice.due_date < now
        ]
        payload = []
        for invoice in overdue:
            data = invoice.to_dict()
            data['days_overdue'] = (now - invoice.due_date).days
            payload.append(data)
        return jsonify(payload)

    @api_bp.route('/accounts-receivable/stats', methods=['GET'])
    @require_role(*ANY_ROLE)
    def receivables_stats():
        return jsonify(receivables_summary())
