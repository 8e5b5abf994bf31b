from backoffice import db
from backoffice.data.core.user_created_base import UserCreatedBase


class InventoryItem(UserCreatedBase):
    """Catalogue entry whose stock level is owned by the stock ledger"""
    __tablename__ = 'inventory'

    product_name = db.Column(db.String(200), nullable=False)
    unit = db.Column(db.String(30), nullable=False, default='unit')
    purchase_price = db.Column(db.Float, nullable=False, default=0.0)
    sale_price = db.Column(db.Float, nullable=False, default=0.0)

    # Baseline recorded at registration, never changed afterwards
    initial_stock = db.Column(db.Float, nullable=False, default=0.0)
    # Only written by StockLedger
    current_stock = db.Column(db.Float, nullable=False, default=0.0)
    reorder_point = db.Column(db.Float, nullable=False, default=0.0)

    version_id = db.Column(db.Integer, nullable=False)

    __mapper_args__ = {'version_id_col': version_id}

    movements = db.relationship(
        'StockMovement',
        back_populates='inventory_item',
        order_by='StockMovement.id',
        lazy='dynamic',
    )

    # Columns a catalogue update may touch
    catalogue_fields = ('product_name', 'unit', 'purchase_price', 'sale_price', 'reorder_point')

    def __repr__(self):
        return f'<InventoryItem {self.id}: {self.product_name} stock={self.current_stock}>'
