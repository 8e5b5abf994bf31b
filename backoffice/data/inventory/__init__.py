"""
Inventory models: catalogue items and their stock movement ledger
"""

from .inventory_item import InventoryItem
from .stock_movement import StockMovement

__all__ = [
    'InventoryItem',
    'StockMovement',
]
