from datetime import datetime

from backoffice import db
from backoffice.data.core.user_created_base import UserCreatedBase

INVOICE_PENDING = 'pending'
INVOICE_PARTIAL = 'partial'
INVOICE_PAID = 'paid'
INVOICE_OVERDUE = 'overdue'
INVOICE_CANCELLED = 'cancelled'
INVOICE_STATUSES = (INVOICE_PENDING, INVOICE_PARTIAL, INVOICE_PAID, INVOICE_OVERDUE, INVOICE_CANCELLED)
OUTSTANDING_STATUSES = (INVOICE_PENDING, INVOICE_PARTIAL, INVOICE_OVERDUE)


class Invoice(UserCreatedBase):
    """Customer invoice tracked as an account receivable"""
    __tablename__ = 'invoices'

    invoice_number = db.Column(db.String(30), unique=True, nullable=False)

    client_name = db.Column(db.String(200), nullable=False)
    client_email = db.Column(db.String(120), nullable=True)
    client_phone = db.Column(db.String(40), nullable=True)
    client_address = db.Column(db.Text, nullable=True)
    client_tax_id = db.Column(db.String(40), nullable=True)

    issue_date = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    due_date = db.Column(db.DateTime, nullable=True)

    subtotal = db.Column(db.Float, nullable=False, default=0.0)
    tax_rate = db.Column(db.Float, nullable=False, default=0.0)
    tax_amount = db.Column(db.Float, nullable=False, default=0.0)
    discount_amount = db.Column(db.Float, nullable=False, default=0.0)
    total = db.Column(db.Float, nullable=False, default=0.0)
    amount_paid = db.Column(db.Float, nullable=False, default=0.0)

    status = db.Column(db.String(20), nullable=False, default=INVOICE_PENDING, index=True)
    payment_method = db.Column(db.String(30), nullable=True)
    notes = db.Column(db.Text, nullable=True)
    sale_id = db.Column(db.Integer, db.ForeignKey('sales.id'), nullable=True)

    items = db.relationship(
        'InvoiceItem',
        back_populates='invoice',
        cascade='all, delete-orphan',
        order_by='InvoiceItem.id',
    )
    payments = db.relationship(
        'InvoicePayment',
        back_populates='invoice',
        cascade='all, delete-orphan',
        order_by='InvoicePayment.id',
    )

    @property
    def balance(self):
        return round((self.total or 0.0) - (self.amount_paid or 0.0), 2)

    @property
    def aging_reference_date(self):
        return self.due_date or self.issue_date

    def __repr__(self):
        return f'<Invoice {self.invoice_number} ({self.status}) balance={self.balance}>'

    def to_dict(self, include_items=False, include_audit_fields=True, exclude=None):
        data = super().to_dict(include_audit_fields=include_audit_fields, exclude=exclude)
        data['balance'] = self.balance
        if include_items:
            data['items'] = [item.to_dict(include_audit_fields=False) for item in self.items]
            data['payments'] = [payment.to_dict(include_audit_fields=False) for payment in self.payments]
        return data


class InvoiceItem(UserCreatedBase):
    __tablename__ = 'invoice_items'

    invoice_id = db.Column(db.Integer, db.ForeignKey('invoices.id'), nullable=False, index=True)
    inventory_id = db.Column(db.Integer, db.ForeignKey('inventory.id'), nullable=True)
    description = db.Column(db.String(255), nullable=False)
    quantity = db.Column(db.Float, nullable=False)
    unit_price = db.Column(db.Float, nullable=False)
    subtotal = db.Column(db.Float, nullable=False, default=0.0)

    invoice = db.relationship('Invoice', back_populates='items')


class InvoicePayment(UserCreatedBase):
    __tablename__ = 'invoice_payments'

    invoice_id = db.Column(db.Integer, db.ForeignKey('invoices.id'), nullable=False, index=True)
    payment_date = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    amount = db.Column(db.Float, nullable=False)
    payment_method = db.Column(db.String(30), nullable=False, default='cash')
    reference_number = db.Column(db.String(100), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    invoice = db.relationship('Invoice', back_populates='payments')
