"""
Tests for the stock ledger: movement chaining, the zero floor, stock status
and the guards on the movement table.
"""
import pytest
from sqlalchemy import text
from sqlalchemy.orm.exc import StaleDataError

from backoffice import db
from backoffice.buisness.core.exceptions import NotFoundError, ValidationError
from backoffice.buisness.core.transaction import run_in_transaction
from backoffice.buisness.inventory.inventory_manager import InventoryManager
from backoffice.buisness.inventory.stock_ledger import (
    MODE_DECREASE,
    MODE_INCREASE,
    MODE_SET,
    StockLedger,
    StockStatus,
    get_stock_status,
)
from backoffice.data.inventory.stock_movement import (
    MOVEMENT_ADJUSTMENT,
    MOVEMENT_IN,
    MOVEMENT_OUT,
    ImmutableMovementError,
    StockMovement,
)


def _movements(item):
    return StockMovement.query.filter_by(inventory_id=item.id).order_by(StockMovement.id).all()


def test_new_item_starts_at_initial_stock(make_item):
    item = make_item(initial_stock=12)
    assert item.current_stock == 12
    assert item.initial_stock == 12
    assert _movements(item) == []


def test_decrease_past_zero_is_clamped(make_item):
    """10 in stock with reorder point 5; taking 15 leaves 0 and flags the movement"""
    item = make_item(initial_stock=10, reorder_point=5)
    ledger = StockLedger()

    movement = run_in_transaction(lambda: ledger.adjust_stock(item.id, -15, 'sale'))

    assert movement.new_stock == 0
    assert movement.previous_stock == 10
    assert movement.quantity == -15
    assert movement.applied_quantity == -10
    assert movement.clamped is True
    assert movement.movement_type == MOVEMENT_OUT

    item = ledger.get_item(item.id)
    assert item.current_stock == 0
    assert get_stock_status(item) is StockStatus.OUT_OF_STOCK
    assert len(_movements(item)) == 1


def test_movements_chain_and_sum_to_current_stock(make_item):
    item = make_item(initial_stock=10)
    ledger = StockLedger()

    for adjustment in (5, -3, -20, 7, 2.5):
        run_in_transaction(lambda: ledger.adjust_stock(item.id, adjustment, 'count'))

    movements = _movements(item)
    assert len(movements) == 5

    previous = 10
    for movement in movements:
        assert movement.previous_stock == previous, "each movement starts where the last one ended"
        assert movement.new_stock >= 0
        assert movement.new_stock == round(movement.previous_stock + movement.applied_quantity, 3)
        previous = movement.new_stock

    item = ledger.get_item(item.id)
    assert item.current_stock == previous == 9.5
    assert round(item.initial_stock + sum(m.applied_quantity for m in movements), 3) == item.current_stock

    report = ledger.verify_ledger(item.id)
    assert report.is_consistent
    assert report.movement_count == 5
    assert report.ledger_total == -0.5


def test_verify_ledger_reports_chain_break(make_item):
    item = make_item(initial_stock=10)
    ledger = StockLedger()
    run_in_transaction(lambda: ledger.adjust_stock(item.id, -2, 'sale'))

    # Simulate an out-of-band stock edit that bypassed the ledger
    with db.engine.begin() as conn:
        conn.execute(text("UPDATE inventory SET current_stock = 50 WHERE id = :id"), {'id': item.id})
    run_in_transaction(lambda: ledger.adjust_stock(item.id, 1, 'count'))

    report = ledger.verify_ledger(item.id)
    assert not report.is_consistent
    assert not report.sum_matches
    assert len(report.chain_breaks) == 1
    assert report.chain_breaks[0].expected_previous_stock == 8
    assert report.chain_breaks[0].recorded_previous_stock == 50


@pytest.mark.parametrize('current, reorder, expected', [
    (0, 5, StockStatus.OUT_OF_STOCK),
    (1, 5, StockStatus.LOW_STOCK),
    (5, 5, StockStatus.LOW_STOCK),
    (5.5, 5, StockStatus.IN_STOCK),
    (3, 0, StockStatus.IN_STOCK),
])
def test_stock_status_boundaries(make_item, current, reorder, expected):
    item = make_item(initial_stock=current, reorder_point=reorder)
    assert get_stock_status(item) is expected


def test_increase_decrease_and_set_modes(make_item):
    item = make_item(initial_stock=10)
    ledger = StockLedger()

    incoming = run_in_transaction(lambda: ledger.apply_mode(item.id, MODE_INCREASE, 4, 'delivery', 'PO-1'))
    assert incoming.movement_type == MOVEMENT_IN
    assert incoming.new_stock == 14
    assert incoming.reference == 'PO-1'

    outgoing = run_in_transaction(lambda: ledger.apply_mode(item.id, MODE_DECREASE, 6, 'damaged'))
    assert outgoing.movement_type == MOVEMENT_OUT
    assert outgoing.quantity == -6
    assert outgoing.new_stock == 8

    counted = run_in_transaction(lambda: ledger.apply_mode(item.id, MODE_SET, 25, 'stock take'))
    assert counted.movement_type == MOVEMENT_ADJUSTMENT
    assert counted.quantity == 17
    assert counted.new_stock == 25
    assert ledger.get_item(item.id).current_stock == 25


def test_set_to_current_value_is_rejected(make_item):
    item = make_item(initial_stock=10)
    with pytest.raises(ValidationError) as exc_info:
        StockLedger().set_absolute(item.id, 10, 'stock take')
    assert 'quantity' in exc_info.value.errors


@pytest.mark.parametrize('adjustment, reason, field', [
    (0, 'count', 'adjustment'),
    ('abc', 'count', 'adjustment'),
    (True, 'count', 'adjustment'),
    (float('nan'), 'count', 'adjustment'),
    (5, '', 'reason'),
    (5, None, 'reason'),
    (5, '   ', 'reason'),
])
def test_invalid_adjustments_are_rejected(make_item, adjustment, reason, field):
    item = make_item(initial_stock=10)
    with pytest.raises(ValidationError) as exc_info:
        StockLedger().adjust_stock(item.id, adjustment, reason)
    assert field in exc_info.value.errors
    assert _movements(item) == []
    assert item.current_stock == 10


def test_unknown_mode_is_rejected(make_item):
    item = make_item()
    with pytest.raises(ValidationError) as exc_info:
        StockLedger().apply_mode(item.id, 'teleport', 1, 'count')
    assert 'mode' in exc_info.value.errors


def test_adjusting_unknown_item_raises_not_found(ctx):
    with pytest.raises(NotFoundError):
        StockLedger().adjust_stock(9999, 5, 'count')


def test_stock_fields_cannot_be_edited_directly(make_item):
    item = make_item(initial_stock=10)
    with pytest.raises(ValidationError) as exc_info:
        InventoryManager().update_item(item.id, {'current_stock': 99, 'product_name': 'Renamed'})
    assert 'current_stock' in exc_info.value.errors

    updated = InventoryManager().update_item(item.id, {'product_name': 'Renamed', 'reorder_point': 2})
    assert updated.product_name == 'Renamed'
    assert updated.current_stock == 10


def test_movements_cannot_be_edited(make_item):
    item = make_item(initial_stock=10)
    movement = run_in_transaction(lambda: StockLedger().adjust_stock(item.id, -1, 'sale'))

    movement.reason = 'rewritten'
    with pytest.raises(ImmutableMovementError):
        db.session.flush()
    db.session.rollback()


def test_movements_cannot_be_deleted(make_item):
    item = make_item(initial_stock=10)
    movement = run_in_transaction(lambda: StockLedger().adjust_stock(item.id, -1, 'sale'))

    db.session.delete(movement)
    with pytest.raises(ImmutableMovementError):
        db.session.flush()
    db.session.rollback()


def test_concurrent_item_update_fails_version_check(make_item):
    item = make_item(initial_stock=10)
    assert item.current_stock == 10

    # Another writer commits a new version of the row behind this session's back
    with db.engine.begin() as conn:
        conn.execute(
            text("UPDATE inventory SET current_stock = 3, version_id = version_id + 1 WHERE id = :id"),
            {'id': item.id},
        )

    item.current_stock = 7
    with pytest.raises(StaleDataError):
        db.session.flush()
    db.session.rollback()


def test_low_stock_items(make_item):
    make_item('Plenty', initial_stock=50, reorder_point=5)
    low = make_item('Low', initial_stock=3, reorder_point=5)
    empty = make_item('Empty', initial_stock=0, reorder_point=5)

    names = [item.product_name for item in StockLedger().low_stock_items()]
    assert names == [empty.product_name, low.product_name]
