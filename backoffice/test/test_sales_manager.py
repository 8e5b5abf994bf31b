"""
Tests for recording sales, purchases, incomes and expenses
"""
from datetime import datetime

import pytest

from backoffice.buisness.core.exceptions import NotFoundError, ValidationError
from backoffice.buisness.core.transaction import run_in_transaction
from backoffice.buisness.finance.sales_manager import SalesManager
from backoffice.data.finance.expense import Expense
from backoffice.data.finance.income import Income
from backoffice.data.finance.purchase import Purchase
from backoffice.data.finance.sale import Sale
from backoffice.data.inventory.stock_movement import MOVEMENT_IN, MOVEMENT_OUT, StockMovement

NOW = datetime(2024, 4, 15, 14, 0)


def test_direct_sale_takes_stock(make_item):
    item = make_item('Widget', initial_stock=10, sale_price=12.5)
    manager = SalesManager()

    sale = run_in_transaction(lambda: manager.record_sale({
        'customer_name': 'Walk-in',
        'payment_method': 'CARD',
        'items': [{'inventory_id': item.id, 'quantity': 4}],
    }, NOW))

    assert sale.sale_number == 'V-2024-04-001'
    assert sale.total == 50.0
    assert sale.payment_method == 'card'
    assert manager.ledger.get_item(item.id).current_stock == 6


def test_sale_lines_for_the_same_item_are_checked_together(make_item):
    item = make_item('Widget', initial_stock=5)
    manager = SalesManager()
    with pytest.raises(ValidationError):
        run_in_transaction(lambda: manager.record_sale({
            'customer_name': 'Walk-in',
            'items': [
                {'inventory_id': item.id, 'quantity': 3},
                {'inventory_id': item.id, 'quantity': 3},
            ],
        }, NOW))
    assert Sale.query.count() == 0
    assert manager.ledger.get_item(item.id).current_stock == 5


def test_sale_with_unknown_item(ctx):
    with pytest.raises(NotFoundError):
        SalesManager().record_sale({'customer_name': 'X', 'items': [{'inventory_id': 42, 'quantity': 1}]}, NOW)


def test_sale_with_unknown_payment_method(make_item):
    item = make_item()
    with pytest.raises(ValidationError) as exc_info:
        SalesManager().record_sale({
            'customer_name': 'X',
            'payment_method': 'barter',
            'items': [{'inventory_id': item.id, 'quantity': 1}],
        }, NOW)
    assert 'payment_method' in exc_info.value.errors


def test_linked_purchase_restocks_item(make_item):
    item = make_item('Widget', initial_stock=2)
    manager = SalesManager()

    purchase = run_in_transaction(lambda: manager.record_purchase({
        'supplier': 'Parts Co',
        'inventory_id': item.id,
        'quantity': 8,
        'unit_price': 4.25,
    }, NOW))

    assert purchase.product == 'Widget'
    assert purchase.total_amount == 34.0
    assert manager.ledger.get_item(item.id).current_stock == 10
    movement = StockMovement.query.filter_by(inventory_id=item.id).one()
    assert movement.movement_type == MOVEMENT_IN
    assert movement.reference == f"PUR-{purchase.id}"


def test_unlinked_purchase_leaves_stock_alone(ctx):
    purchase = run_in_transaction(lambda: SalesManager().record_purchase({
        'supplier': 'Office Depot', 'product': 'Paper', 'quantity': 5, 'unit_price': 6.0,
    }, NOW))
    assert purchase.inventory_id is None
    assert purchase.total_amount == 30.0
    assert StockMovement.query.count() == 0


def test_income_and_expense(ctx):
    manager = SalesManager()
    income = run_in_transaction(lambda: manager.record_income({
        'client': 'Acme', 'product_service': 'Support', 'quantity': 3, 'unit_price': 40.0,
    }, NOW))
    expense = run_in_transaction(lambda: manager.record_expense({
        'category': 'utilities', 'description': 'Power bill', 'amount': 88.123, 'payment_method': 'transfer',
    }, NOW))

    assert income.total == 120.0
    assert income.date == NOW
    assert expense.amount == 88.12
    assert expense.payment_method == 'transfer'

    with pytest.raises(ValidationError) as exc_info:
        manager.record_expense({'category': 'utilities', 'description': 'Refund', 'amount': -5}, NOW)
    assert 'amount' in exc_info.value.errors


def _linked_purchase(manager, item, quantity=8):
    return run_in_transaction(lambda: manager.record_purchase({
        'supplier': 'Parts Co', 'inventory_id': item.id, 'quantity': quantity, 'unit_price': 4.0,
    }, NOW))


def _movements(item):
    return StockMovement.query.filter_by(inventory_id=item.id).order_by(StockMovement.id).all()


def test_purchase_quantity_correction_posts_the_difference(make_item):
    item = make_item('Widget', initial_stock=2)
    manager = SalesManager()
    purchase = _linked_purchase(manager, item)
    purchase_id = purchase.id

    purchase = run_in_transaction(lambda: manager.update_purchase(purchase_id, {'quantity': 5}))

    assert purchase.total_amount == 20.0
    assert manager.ledger.get_item(item.id).current_stock == 7
    correction = _movements(item)[-1]
    assert correction.movement_type == MOVEMENT_OUT
    assert correction.quantity == -3
    assert correction.reason == 'Purchase corrected'
    assert correction.reference == f"PUR-{purchase_id}"
    assert manager.ledger.verify_ledger(item.id).is_consistent


def test_purchase_moved_to_another_item(make_item):
    first = make_item('Widget', initial_stock=2)
    second = make_item('Gadget', initial_stock=0)
    manager = SalesManager()
    purchase = _linked_purchase(manager, first, quantity=5)

    run_in_transaction(lambda: manager.update_purchase(purchase.id, {'inventory_id': second.id}))

    assert manager.ledger.get_item(first.id).current_stock == 2
    assert manager.ledger.get_item(second.id).current_stock == 5
    assert [m.reason for m in _movements(first)] == ['Purchase', 'Purchase corrected']
    assert [m.reason for m in _movements(second)] == ['Purchase']


def test_purchase_edit_without_stock_change_posts_nothing(make_item):
    item = make_item('Widget', initial_stock=2)
    manager = SalesManager()
    purchase = _linked_purchase(manager, item)

    purchase = run_in_transaction(lambda: manager.update_purchase(purchase.id, {'unit_price': 5, 'notes': 'rush'}))

    assert purchase.total_amount == 40.0
    assert purchase.notes == 'rush'
    assert len(_movements(item)) == 1


def test_deleting_linked_purchase_reverses_stock(make_item):
    item = make_item('Widget', initial_stock=2)
    manager = SalesManager()
    purchase = _linked_purchase(manager, item)
    purchase_id = purchase.id

    run_in_transaction(lambda: manager.delete_purchase(purchase_id))

    assert Purchase.query.count() == 0
    assert manager.ledger.get_item(item.id).current_stock == 2
    reversal = _movements(item)[-1]
    assert reversal.reason == 'Purchase deleted'
    assert reversal.reference == f"PUR-{purchase_id}"


def test_deleting_purchase_after_stock_was_sold_clamps(make_item):
    item = make_item('Widget', initial_stock=0)
    manager = SalesManager()
    purchase = _linked_purchase(manager, item, quantity=5)
    run_in_transaction(lambda: manager.ledger.decrease(item.id, 4, 'Sale'))

    run_in_transaction(lambda: manager.delete_purchase(purchase.id))

    assert manager.ledger.get_item(item.id).current_stock == 0
    reversal = _movements(item)[-1]
    assert reversal.clamped is True
    assert reversal.applied_quantity == -1
    assert manager.ledger.verify_ledger(item.id).is_consistent


def test_update_and_delete_income_and_expense(ctx):
    manager = SalesManager()
    income = run_in_transaction(lambda: manager.record_income({
        'client': 'Acme', 'product_service': 'Support', 'quantity': 3, 'unit_price': 40.0,
    }, NOW))
    expense = run_in_transaction(lambda: manager.record_expense({
        'category': 'utilities', 'description': 'Power bill', 'amount': 88,
    }, NOW))
    income_id, expense_id = income.id, expense.id

    income = run_in_transaction(lambda: manager.update_income(income_id, {'quantity': 2}))
    expense = run_in_transaction(lambda: manager.update_expense(expense_id, {'category': 'rent'}))
    assert income.total == 80.0
    assert income.client == 'Acme'
    assert expense.category == 'rent'
    assert expense.amount == 88.0

    with pytest.raises(ValidationError):
        manager.update_expense(expense_id, {'amount': 0})

    run_in_transaction(lambda: manager.delete_income(income_id))
    run_in_transaction(lambda: manager.delete_expense(expense_id))
    assert Income.query.count() == 0
    assert Expense.query.count() == 0

    with pytest.raises(NotFoundError):
        manager.delete_income(income_id)
