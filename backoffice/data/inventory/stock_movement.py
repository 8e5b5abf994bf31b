from datetime import datetime

from sqlalchemy import event
from sqlalchemy.orm import object_session

from backoffice import db
from backoffice.data.core.user_created_base import UserCreatedBase

MOVEMENT_IN = 'in'
MOVEMENT_OUT = 'out'
MOVEMENT_ADJUSTMENT = 'adjustment'
MOVEMENT_TYPES = (MOVEMENT_IN, MOVEMENT_OUT, MOVEMENT_ADJUSTMENT)


class ImmutableMovementError(Exception):
    """Raised when a persisted stock movement is modified or deleted"""


class StockMovement(UserCreatedBase):
    """One audited change to an inventory item's stock; append-only"""
    __tablename__ = 'stock_movements'

    inventory_id = db.Column(db.Integer, db.ForeignKey('inventory.id'), nullable=False, index=True)
    movement_type = db.Column(db.String(20), nullable=False)

    # Signed adjustment the caller asked for
    quantity = db.Column(db.Float, nullable=False)
    # new_stock - previous_stock
    applied_quantity = db.Column(db.Float, nullable=False)
    previous_stock = db.Column(db.Float, nullable=False)
    new_stock = db.Column(db.Float, nullable=False)
    clamped = db.Column(db.Boolean, nullable=False, default=False)

    reason = db.Column(db.String(255), nullable=False)
    reference = db.Column(db.String(100), nullable=True)
    movement_date = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    inventory_item = db.relationship('InventoryItem', back_populates='movements')

    def __repr__(self):
        return (f'<StockMovement {self.movement_type}: item {self.inventory_id} '
                f'{self.previous_stock} -> {self.new_stock}>')

    def to_dict(self, include_audit_fields=True, exclude=None):
        data = super().to_dict(include_audit_fields=include_audit_fields, exclude=exclude)
        if self.inventory_item is not None:
            data['product_name'] = self.inventory_item.product_name
        return data


@event.listens_for(StockMovement, 'before_update')
def _block_movement_update(mapper, connection, target):
    session = object_session(target)
    if session is not None and session.is_modified(target, include_collections=False):
        raise ImmutableMovementError(
            f"Stock movement {target.id} is append-only and cannot be updated"
        )


@event.listens_for(StockMovement, 'before_delete')
def _block_movement_delete(mapper, connection, target):
    raise ImmutableMovementError(
        f"Stock movement {target.id} is append-only and cannot be deleted"
    )
