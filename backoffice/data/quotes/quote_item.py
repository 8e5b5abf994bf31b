from backoffice import db
from backoffice.data.core.user_created_base import UserCreatedBase


class QuoteItem(UserCreatedBase):
    __tablename__ = 'quote_items'

    quote_id = db.Column(db.Integer, db.ForeignKey('quotes.id'), nullable=False, index=True)
    inventory_id = db.Column(db.Integer, db.ForeignKey('inventory.id'), nullable=True)
    product_name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)
    quantity = db.Column(db.Float, nullable=False)
    unit_price = db.Column(db.Float, nullable=False)
    subtotal = db.Column(db.Float, nullable=False, default=0.0)

    quote = db.relationship('Quote', back_populates='items')
    inventory_item = db.relationship('InventoryItem')

    def __repr__(self):
        return f'<QuoteItem {self.product_name} x{self.quantity}>'
