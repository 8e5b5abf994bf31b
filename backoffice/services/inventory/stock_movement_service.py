"""
Stock Movement Service
Presentation service for stock movement history and inventory listings.
"""

from typing import Dict, List, Optional, Tuple, Any
from datetime import datetime
from flask_sqlalchemy.pagination import Pagination
from backoffice.data.inventory.inventory_item import InventoryItem
from backoffice.data.inventory.stock_movement import MOVEMENT_TYPES, StockMovement
from backoffice.buisness.inventory.stock_ledger import get_stock_status


class StockMovementService:
    """
    Service for stock movement presentation data.

    Provides methods for:
    - Filtered, paginated movement listings
    - Movement history for one item
    - Inventory rows decorated with their stock status
    """

    @staticmethod
    def get_list_data(
        page: int = 1,
        per_page: int = 20,
        inventory_id: Optional[int] = None,
        movement_type: Optional[str] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None
    ) -> Tuple[Pagination, Dict[str, Any]]:
        """
        Get paginated stock movements with filters, most recent first.

        Returns:
            Tuple of (pagination_object, filter_options_dict)
        """
        query = StockMovement.query

        if inventory_id:
            query = query.filter_by(inventory_id=inventory_id)

        if movement_type:
            query = query.filter_by(movement_type=movement_type)

        if date_from:
            query = query.filter(StockMovement.created_at >= date_from)

        if date_to:
            query = query.filter(StockMovement.created_at <= date_to)

        query = query.order_by(StockMovement.id.desc())

        pagination = query.paginate(page=page, per_page=per_page, error_out=False)

        filter_options = {
            'movement_types': list(MOVEMENT_TYPES)
        }

        return pagination, filter_options

    @staticmethod
    def get_movement_history(inventory_id: int, limit: Optional[int] = None) -> List[StockMovement]:
        """Movement history for one item, most recent first."""
        query = StockMovement.query.filter_by(inventory_id=inventory_id).order_by(StockMovement.id.desc())

        if limit:
            query = query.limit(limit)

        return query.all()

    @staticmethod
    def item_to_dict(item: InventoryItem) -> Dict[str, Any]:
        data = item.to_dict()
        data['status'] = get_stock_status(item).value
        return data

    @staticmethod
    def stock_state(item: InventoryItem) -> Dict[str, Any]:
        return {
            'id': item.id,
            'current_stock': item.current_stock,
            'reorder_point': item.reorder_point,
            'unit': item.unit,
            'status': get_stock_status(item).value,
        }

    @staticmethod
    def list_items(search: Optional[str] = None) -> List[InventoryItem]:
        query = InventoryItem.query
        if search:
            query = query.filter(InventoryItem.product_name.ilike(f"%{search}%"))
        return query.order_by(InventoryItem.product_name).all()
