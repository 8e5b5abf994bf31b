from datetime import datetime

from backoffice import db
from backoffice.data.core.user_created_base import UserCreatedBase


class Sale(UserCreatedBase):
    __tablename__ = 'sales'

    sale_number = db.Column(db.String(30), unique=True, nullable=False)
    customer_name = db.Column(db.String(200), nullable=False)
    sale_date = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, index=True)

    subtotal = db.Column(db.Float, nullable=False, default=0.0)
    tax_rate = db.Column(db.Float, nullable=False, default=0.0)
    tax_amount = db.Column(db.Float, nullable=False, default=0.0)
    discount_amount = db.Column(db.Float, nullable=False, default=0.0)
    total = db.Column(db.Float, nullable=False, default=0.0)

    payment_method = db.Column(db.String(30), nullable=False, default='cash')
    notes = db.Column(db.Text, nullable=True)
    quote_id = db.Column(db.Integer, db.ForeignKey('quotes.id'), nullable=True)

    items = db.relationship(
        'SaleItem',
        back_populates='sale',
        cascade='all, delete-orphan',
        order_by='SaleItem.id',
    )
    quote = db.relationship('Quote', foreign_keys=[quote_id])

    def __repr__(self):
        return f'<Sale {self.sale_number} total={self.total}>'

    def to_dict(self, include_items=False, include_audit_fields=True, exclude=None):
        data = super().to_dict(include_audit_fields=include_audit_fields, exclude=exclude)
        if include_items:
            data['items'] = [item.to_dict(include_audit_fields=False) for item in self.items]
        return data


class SaleItem(UserCreatedBase):
    __tablename__ = 'sale_items'

    sale_id = db.Column(db.Integer, db.ForeignKey('sales.id'), nullable=False, index=True)
    inventory_id = db.Column(db.Integer, db.ForeignKey('inventory.id'), nullable=False)
    product_name = db.Column(db.String(200), nullable=False)
    quantity = db.Column(db.Float, nullable=False)
    unit_price = db.Column(db.Float, nullable=False)
    subtotal = db.Column(db.Float, nullable=False, default=0.0)

    sale = db.relationship('Sale', back_populates='items')
    inventory_item = db.relationship('InventoryItem')
