from __future__ import annotations

from backoffice import db
from backoffice.buisness.core.exceptions import ValidationError
from backoffice.buisness.core.validation import coerce_number, money, require_text
from backoffice.buisness.inventory.stock_ledger import StockLedger
from backoffice.data.inventory.inventory_item import InventoryItem
from backoffice.utils.logger import get_logger

logger = get_logger("backoffice.buisness.inventory.inventory_manager")

STOCK_FIELDS = ('initial_stock', 'current_stock')


class InventoryManager:
    """
    Catalogue operations on inventory items.

    Stock levels are not editable here; they change only through
    :class:`StockLedger`.
    """

    def __init__(self, user_id: int | None = None):
        self.user_id = user_id
        self.ledger = StockLedger(user_id)

    def _catalogue_values(self, data: dict, *, partial: bool) -> dict:
        values = {}
        if not partial or 'product_name' in data:
            values['product_name'] = require_text(data.get('product_name'), 'product_name', max_length=200)
        if not partial or 'unit' in data:
            values['unit'] = require_text(data.get('unit') or 'unit', 'unit', max_length=30)
        for price_field in ('purchase_price', 'sale_price'):
            if not partial or price_field in data:
                values[price_field] = money(
                    coerce_number(data.get(price_field), price_field, non_negative=True, default=0)
                )
        if not partial or 'reorder_point' in data:
            values['reorder_point'] = coerce_number(
                data.get('reorder_point'), 'reorder_point', non_negative=True, default=0
            )
        return values

    def create_item(self, data: dict) -> InventoryItem:
        values = self._catalogue_values(data, partial=False)
        initial_stock = coerce_number(data.get('initial_stock'), 'initial_stock', non_negative=True, default=0)

        item = InventoryItem(
            initial_stock=initial_stock,
            current_stock=initial_stock,
            created_by_id=self.user_id,
            updated_by_id=self.user_id,
            **values,
        )
        db.session.add(item)
        db.session.flush()
        logger.info(f"Registered inventory item {item.id}: {item.product_name} (initial stock {initial_stock})")
        return item

    def update_item(self, item_id, data: dict) -> InventoryItem:
        blocked = [name for name in STOCK_FIELDS if name in data]
        if blocked:
            raise ValidationError(
                "Stock levels cannot be edited directly; use a stock adjustment",
                errors={name: "read-only" for name in blocked},
            )

        item = self.ledger.get_item(item_id)
        for key, value in self._catalogue_values(data, partial=True).items():
            setattr(item, key, value)
        item.updated_by_id = self.user_id
        db.session.flush()
        logger.info(f"Updated inventory item {item.id}")
        return item
