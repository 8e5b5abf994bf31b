from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from backoffice import db
from backoffice.buisness.core.exceptions import NotFoundError, ValidationError
from backoffice.buisness.core.validation import coerce_id, coerce_number, optional_text, require_text
from backoffice.data.inventory.inventory_item import InventoryItem
from backoffice.data.inventory.stock_movement import (
    MOVEMENT_ADJUSTMENT,
    MOVEMENT_IN,
    MOVEMENT_OUT,
    StockMovement,
)
from backoffice.utils.logger import get_logger

logger = get_logger("backoffice.buisness.inventory.stock_ledger")

# Stock quantities are compared and stored at this precision
STOCK_PRECISION = 3

MODE_INCREASE = 'increase'
MODE_DECREASE = 'decrease'
MODE_SET = 'set'
ADJUSTMENT_MODES = (MODE_INCREASE, MODE_DECREASE, MODE_SET)


class StockStatus(str, Enum):
    OUT_OF_STOCK = 'outOfStock'
    LOW_STOCK = 'lowStock'
    IN_STOCK = 'inStock'


def get_stock_status(item) -> StockStatus:
    """Classify an item by comparing its current stock with its reorder point."""
    current = item.current_stock or 0.0
    if current <= 0:
        return StockStatus.OUT_OF_STOCK
    if current <= (item.reorder_point or 0.0):
        return StockStatus.LOW_STOCK
    return StockStatus.IN_STOCK


def _round_stock(value: float) -> float:
    return round(value, STOCK_PRECISION)


@dataclass(frozen=True)
class ChainBreak:
    movement_id: int
    expected_previous_stock: float
    recorded_previous_stock: float


@dataclass
class LedgerReport:
    item_id: int
    initial_stock: float
    current_stock: float
    movement_count: int
    ledger_total: float
    chain_breaks: list[ChainBreak] = field(default_factory=list)

    @property
    def sum_matches(self) -> bool:
        return _round_stock(self.initial_stock + self.ledger_total) == _round_stock(self.current_stock)

    @property
    def is_consistent(self) -> bool:
        return self.sum_matches and not self.chain_breaks and self.current_stock >= 0

    def to_dict(self) -> dict:
        return {
            'item_id': self.item_id,
            'initial_stock': self.initial_stock,
            'current_stock': self.current_stock,
            'movement_count': self.movement_count,
            'ledger_total': self.ledger_total,
            'sum_matches': self.sum_matches,
            'chain_breaks': [vars(brk) for brk in self.chain_breaks],
            'is_consistent': self.is_consistent,
        }


class StockLedger:
    """
    The only writer of ``InventoryItem.current_stock``.

    Every stock change is a read-modify-write of one item plus exactly one
    appended :class:`StockMovement`, flushed together. The ledger never
    commits; wrap calls in ``run_in_transaction`` so the item row, its version
    check and the movement are committed atomically and retried on conflict.
    """

    def __init__(self, user_id: int | None = None):
        self.user_id = user_id

    def get_item(self, item_id, *, for_update: bool = False) -> InventoryItem:
        item_id = coerce_id(item_id, 'inventory_id')
        if for_update:
            # populate_existing so the read-modify-write sees the committed row
            item = db.session.get(
                InventoryItem,
                item_id,
                with_for_update=True,
                populate_existing=True,
            )
        else:
            item = db.session.get(InventoryItem, item_id)
        if item is None:
            raise NotFoundError('Inventory item', item_id)
        return item

    def adjust_stock(
        self,
        item_id,
        adjustment,
        reason,
        reference=None,
        *,
        movement_type: str | None = None,
    ) -> StockMovement:
        """
        Apply a signed adjustment to an item's stock and record the movement.

        The resulting stock is floored at zero. When the floor cuts a decrease
        short the movement is flagged ``clamped`` and a warning is logged.

        Raises:
            NotFoundError: the item does not exist
            ValidationError: zero/non-numeric adjustment or empty reason
        """
        adjustment = coerce_number(adjustment, 'adjustment', non_zero=True)
        reason = require_text(reason, 'reason', max_length=255)
        reference = optional_text(reference, 'reference', max_length=100)

        item = self.get_item(item_id, for_update=True)
        return self._apply(item, adjustment, reason, reference, movement_type)

    def increase(self, item_id, quantity, reason, reference=None) -> StockMovement:
        quantity = coerce_number(quantity, 'quantity', positive=True)
        return self.adjust_stock(item_id, quantity, reason, reference, movement_type=MOVEMENT_IN)

    def decrease(self, item_id, quantity, reason, reference=None) -> StockMovement:
        quantity = coerce_number(quantity, 'quantity', positive=True)
        return self.adjust_stock(item_id, -quantity, reason, reference, movement_type=MOVEMENT_OUT)

    def set_absolute(self, item_id, target, reason, reference=None) -> StockMovement:
        """Move the stock to ``target`` by recording the difference as an adjustment."""
        target = coerce_number(target, 'quantity', non_negative=True)
        reason = require_text(reason, 'reason', max_length=255)
        reference = optional_text(reference, 'reference', max_length=100)

        item = self.get_item(item_id, for_update=True)
        adjustment = _round_stock(target - (item.current_stock or 0.0))
        if adjustment == 0:
            raise ValidationError.for_field(
                'quantity', f"Stock is already {item.current_stock}; nothing to adjust"
            )
        return self._apply(item, adjustment, reason, reference, MOVEMENT_ADJUSTMENT)

    def apply_mode(self, item_id, mode, quantity, reason, reference=None) -> StockMovement:
        """Dispatch one of the caller-facing modes: increase, decrease or set."""
        if mode == MODE_INCREASE:
            return self.increase(item_id, quantity, reason, reference)
        if mode == MODE_DECREASE:
            return self.decrease(item_id, quantity, reason, reference)
        if mode == MODE_SET:
            return self.set_absolute(item_id, quantity, reason, reference)
        raise ValidationError.for_field(
            'mode', f"mode must be one of: {', '.join(ADJUSTMENT_MODES)}"
        )

    def _apply(self, item, adjustment, reason, reference, movement_type) -> StockMovement:
        previous_stock = _round_stock(item.current_stock or 0.0)
        requested_stock = _round_stock(previous_stock + adjustment)
        new_stock = max(0.0, requested_stock)
        clamped = requested_stock < 0

        if movement_type is None:
            movement_type = MOVEMENT_IN if adjustment > 0 else MOVEMENT_OUT

        if clamped:
            logger.warning(
                f"Stock for item {item.id} clamped at zero: {previous_stock} {adjustment:+} "
                f"would give {requested_stock} (reason: {reason})"
            )

        item.current_stock = new_stock
        if self.user_id is not None:
            item.updated_by_id = self.user_id

        movement = StockMovement(
            inventory_id=item.id,
            movement_type=movement_type,
            quantity=adjustment,
            applied_quantity=_round_stock(new_stock - previous_stock),
            previous_stock=previous_stock,
            new_stock=new_stock,
            clamped=clamped,
            reason=reason,
            reference=reference,
            created_by_id=self.user_id,
            updated_by_id=self.user_id,
        )
        db.session.add(movement)
        db.session.flush()

        logger.info(
            f"Stock movement {movement.id} ({movement_type}) on item {item.id}: "
            f"{previous_stock} -> {new_stock}"
        )
        return movement

    def verify_ledger(self, item_or_id) -> LedgerReport:
        """Check the chaining and sum invariants for one item's movements."""
        item = item_or_id if isinstance(item_or_id, InventoryItem) else self.get_item(item_or_id)
        movements = (
            StockMovement.query
            .filter_by(inventory_id=item.id)
            .order_by(StockMovement.id)
            .all()
        )

        chain_breaks = []
        expected_previous = _round_stock(item.initial_stock or 0.0)
        ledger_total = 0.0
        for movement in movements:
            if _round_stock(movement.previous_stock) != expected_previous:
                chain_breaks.append(ChainBreak(movement.id, expected_previous, movement.previous_stock))
            ledger_total += movement.applied_quantity
            expected_previous = _round_stock(movement.new_stock)

        report = LedgerReport(
            item_id=item.id,
            initial_stock=item.initial_stock or 0.0,
            current_stock=item.current_stock or 0.0,
            movement_count=len(movements),
            ledger_total=_round_stock(ledger_total),
            chain_breaks=chain_breaks,
        )
        if not report.is_consistent:
            logger.error(f"Ledger inconsistency for item {item.id}: {report.to_dict()}")
        return report

    def low_stock_items(self) -> list[InventoryItem]:
        """Items that are out of stock or at/below their reorder point."""
        return (
            InventoryItem.query
            .filter(InventoryItem.current_stock <= InventoryItem.reorder_point)
            .order_by(InventoryItem.current_stock, InventoryItem.product_name)
            .all()
        )
