from datetime import datetime

from backoffice import db
from backoffice.data.core.user_created_base import UserCreatedBase


class Quote(UserCreatedBase):
    """Price quotation with a validity window and a constrained status"""
    __tablename__ = 'quotes'

    quote_number = db.Column(db.String(30), unique=True, nullable=False)

    customer_name = db.Column(db.String(200), nullable=False)
    customer_email = db.Column(db.String(120), nullable=True)
    customer_phone = db.Column(db.String(40), nullable=True)
    customer_address = db.Column(db.Text, nullable=True)

    quote_date = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    valid_until = db.Column(db.DateTime, nullable=False)

    # Derived from the items by QuoteManager.recompute_totals
    subtotal = db.Column(db.Float, nullable=False, default=0.0)
    tax_rate = db.Column(db.Float, nullable=False, default=0.0)
    tax_amount = db.Column(db.Float, nullable=False, default=0.0)
    discount_amount = db.Column(db.Float, nullable=False, default=0.0)
    total = db.Column(db.Float, nullable=False, default=0.0)

    status = db.Column(db.String(20), nullable=False, default='draft', index=True)
    notes = db.Column(db.Text, nullable=True)
    terms = db.Column(db.Text, nullable=True)

    converted_sale_id = db.Column(
        db.Integer,
        db.ForeignKey('sales.id', use_alter=True, name='fk_quotes_converted_sale_id'),
        nullable=True,
    )

    items = db.relationship(
        'QuoteItem',
        back_populates='quote',
        cascade='all, delete-orphan',
        order_by='QuoteItem.id',
    )
    converted_sale = db.relationship('Sale', foreign_keys=[converted_sale_id])

    def __repr__(self):
        return f'<Quote {self.quote_number} ({self.status})>'

    def to_dict(self, include_items=False, include_audit_fields=True, exclude=None):
        data = super().to_dict(include_audit_fields=include_audit_fields, exclude=exclude)
        if include_items:
            data['items'] = [item.to_dict(include_audit_fields=False) for item in self.items]
        return data
