from datetime import datetime

from backoffice import db
from backoffice.data.core.user_created_base import UserCreatedBase


class Purchase(UserCreatedBase):
    """Supplier purchase; restocks the linked inventory item when there is one"""
    __tablename__ = 'purchases'

    date = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, index=True)
    supplier = db.Column(db.String(200), nullable=False)
    product = db.Column(db.String(200), nullable=False)
    inventory_id = db.Column(db.Integer, db.ForeignKey('inventory.id'), nullable=True)
    quantity = db.Column(db.Float, nullable=False)
    unit_price = db.Column(db.Float, nullable=False)
    total_amount = db.Column(db.Float, nullable=False)
    category = db.Column(db.String(100), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    inventory_item = db.relationship('InventoryItem')

    def __repr__(self):
        return f'<Purchase {self.product} from {self.supplier}: {self.total_amount}>'
