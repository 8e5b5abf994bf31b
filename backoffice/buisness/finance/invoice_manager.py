from __future__ import annotations

from datetime import datetime

from backoffice import db
from backoffice.buisness.core.exceptions import NotFoundError, StateError, ValidationError
from backoffice.buisness.core.numbering import next_document_number
from backoffice.buisness.core.totals import compute_totals, line_subtotal
from backoffice.buisness.core.validation import (
    coerce_id,
    coerce_number,
    money,
    optional_text,
    require_datetime,
    require_text,
)
from backoffice.buisness.finance.sales_manager import normalize_payment_method
from backoffice.data.finance.invoice import (
    INVOICE_CANCELLED,
    INVOICE_OVERDUE,
    INVOICE_PAID,
    INVOICE_PARTIAL,
    INVOICE_PENDING,
    Invoice,
    InvoiceItem,
    InvoicePayment,
)
from backoffice.utils.logger import get_logger

logger = get_logger("backoffice.buisness.finance.invoice_manager")

PAYABLE_STATUSES = (INVOICE_PENDING, INVOICE_PARTIAL, INVOICE_OVERDUE)


class InvoiceManager:
    """Invoices as accounts receivable: issue, collect payments, cancel, age."""

    def __init__(self, user_id: int | None = None):
        self.user_id = user_id

    def _audit(self, record):
        record.created_by_id = self.user_id
        record.updated_by_id = self.user_id
        return record

    def get_invoice(self, invoice_id) -> Invoice:
        invoice_id = coerce_id(invoice_id, 'invoice_id')
        invoice = db.session.get(Invoice, invoice_id)
        if invoice is None:
            raise NotFoundError('Invoice', invoice_id)
        return invoice

    def _build_items(self, raw_items) -> list[InvoiceItem]:
        if not isinstance(raw_items, list) or not raw_items:
            raise ValidationError.for_field('items', "An invoice needs at least one item")

        items = []
        for index, raw in enumerate(raw_items):
            if not isinstance(raw, dict):
                raise ValidationError.for_field('items', f"Item {index + 1} is malformed")
            quantity = coerce_number(raw.get('quantity'), 'quantity', positive=True)
            unit_price = coerce_number(raw.get('unit_price'), 'unit_price', non_negative=True)
            inventory_id = raw.get('inventory_id')
            items.append(self._audit(InvoiceItem(
                description=require_text(raw.get('description'), 'description', max_length=255),
                inventory_id=coerce_id(inventory_id, 'inventory_id') if inventory_id else None,
                quantity=quantity,
                unit_price=money(unit_price),
                subtotal=line_subtotal(quantity, unit_price),
            )))
        return items

    def create_invoice(self, data: dict, now: datetime | None = None) -> Invoice:
        now = now or datetime.utcnow()
        issue_date = require_datetime(data['issue_date'], 'issue_date') if data.get('issue_date') else now
        due_date = require_datetime(data['due_date'], 'due_date') if data.get('due_date') else None
        if due_date is not None and due_date < issue_date:
            raise ValidationError.for_field('due_date', "due_date cannot be before issue_date")

        items = self._build_items(data.get('items'))
        totals = compute_totals(
            [item.subtotal for item in items],
            data.get('tax_rate'),
            data.get('discount_amount'),
        )

        invoice = self._audit(Invoice(
            invoice_number=next_document_number(Invoice.invoice_number, '', now),
            client_name=require_text(data.get('client_name'), 'client_name', max_length=200),
            client_email=optional_text(data.get('client_email'), 'client_email', max_length=120),
            client_phone=optional_text(data.get('client_phone'), 'client_phone', max_length=40),
            client_address=optional_text(data.get('client_address'), 'client_address'),
            client_tax_id=optional_text(data.get('client_tax_id'), 'client_tax_id', max_length=40),
            issue_date=issue_date,
            due_date=due_date,
            amount_paid=0.0,
            status=INVOICE_PENDING,
            payment_method=optional_text(data.get('payment_method'), 'payment_method', max_length=30),
            notes=optional_text(data.get('notes'), 'notes'),
            sale_id=coerce_id(data['sale_id'], 'sale_id') if data.get('sale_id') else None,
        ))
        totals.apply_to(invoice)
        invoice.items = items

        db.session.add(invoice)
        db.session.flush()
        logger.info(f"Issued invoice {invoice.invoice_number} to {invoice.client_name}: {invoice.total}")
        return invoice

    def register_payment(self, invoice_id, data: dict, now: datetime | None = None) -> InvoicePayment:
        """
        Record a payment against an outstanding invoice.

        The invoice becomes ``paid`` once the balance reaches zero, otherwise
        ``partial`` (an overdue invoice stays ``overdue`` until settled).
        """
        now = now or datetime.utcnow()
        invoice = self.get_invoice(invoice_id)
        if invoice.status not in PAYABLE_STATUSES:
            raise StateError(f"Invoice {invoice.invoice_number} is '{invoice.status}' and cannot take payments")

        amount = money(coerce_number(data.get('amount'), 'amount', positive=True))
        if amount > invoice.balance:
            raise ValidationError.for_field(
                'amount', f"Payment of {amount} exceeds the outstanding balance of {invoice.balance}"
            )

        payment = self._audit(InvoicePayment(
            payment_date=require_datetime(data['payment_date'], 'payment_date') if data.get('payment_date') else now,
            amount=amount,
            payment_method=normalize_payment_method(data.get('payment_method')),
            reference_number=optional_text(data.get('reference_number'), 'reference_number', max_length=100),
            notes=optional_text(data.get('notes'), 'notes'),
        ))
        invoice.payments.append(payment)
        invoice.amount_paid = money((invoice.amount_paid or 0.0) + amount)

        previous = invoice.status
        if invoice.balance <= 0:
            invoice.status = INVOICE_PAID
        elif invoice.status != INVOICE_OVERDUE:
            invoice.status = INVOICE_PARTIAL
        invoice.updated_by_id = self.user_id

        db.session.flush()
        logger.info(
            f"Payment of {amount} on invoice {invoice.invoice_number} "
            f"({previous} -> {invoice.status}, balance {invoice.balance})"
        )
        return payment

    def cancel_invoice(self, invoice_id) -> Invoice:
        invoice = self.get_invoice(invoice_id)
        if invoice.status == INVOICE_CANCELLED:
            return invoice
        if invoice.status == INVOICE_PAID or (invoice.amount_paid or 0.0) > 0:
            raise StateError(f"Invoice {invoice.invoice_number} has payments recorded and cannot be cancelled")
        invoice.status = INVOICE_CANCELLED
        invoice.updated_by_id = self.user_id
        db.session.flush()
        logger.info(f"Cancelled invoice {invoice.invoice_number}")
        return invoice

    def mark_overdue_invoices(self, now: datetime | None = None) -> list[int]:
        """Move pending/partial invoices past their due date to ``overdue``."""
        now = now or datetime.utcnow()
        invoices = (
            Invoice.query
            .filter(Invoice.status.in_((INVOICE_PENDING, INVOICE_PARTIAL)))
            .filter(Invoice.due_date.isnot(None))
            .filter(Invoice.due_date < now)
            .order_by(Invoice.id)
            .all()
        )
        for invoice in invoices:
            invoice.status = INVOICE_OVERDUE
        db.session.flush()

        overdue_ids = [invoice.id for invoice in invoices]
        if overdue_ids:
            logger.info(f"Marked {len(overdue_ids)} invoice(s) overdue: {overdue_ids}")
        return overdue_ids
