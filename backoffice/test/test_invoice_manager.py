"""
Tests for invoice payments, cancellation and the overdue sweep
"""
from datetime import datetime, timedelta

import pytest

from backoffice.buisness.core.exceptions import StateError, ValidationError
from backoffice.buisness.core.transaction import run_in_transaction
from backoffice.buisness.finance.invoice_manager import InvoiceManager

NOW = datetime(2024, 5, 1, 9, 0)


def _create(manager, **extra):
    data = {
        'client_name': 'Globex',
        'client_tax_id': 'TAX-42',
        'issue_date': NOW.isoformat(),
        'due_date': (NOW + timedelta(days=30)).isoformat(),
        'tax_rate': 16,
        'items': [
            {'description': 'Installation', 'quantity': 1, 'unit_price': 500.0},
            {'description': 'Cable', 'quantity': 10, 'unit_price': 5.0},
        ],
    }
    data.update(extra)
    return run_in_transaction(lambda: manager.create_invoice(data, NOW))


def test_create_invoice(ctx):
    invoice = _create(InvoiceManager())
    assert invoice.invoice_number == '2024-05-001'
    assert invoice.status == 'pending'
    assert invoice.subtotal == 550.0
    assert invoice.tax_amount == 88.0
    assert invoice.total == 638.0
    assert invoice.balance == 638.0
    assert [item.subtotal for item in invoice.items] == [500.0, 50.0]


def test_due_date_before_issue_date_is_rejected(ctx):
    with pytest.raises(ValidationError) as exc_info:
        _create(InvoiceManager(), due_date=(NOW - timedelta(days=1)).isoformat())
    assert 'due_date' in exc_info.value.errors


def test_partial_then_full_payment(ctx):
    manager = InvoiceManager()
    invoice = _create(manager)

    run_in_transaction(lambda: manager.register_payment(invoice.id, {'amount': 138.0, 'payment_method': 'transfer'}, NOW))
    invoice = manager.get_invoice(invoice.id)
    assert invoice.status == 'partial'
    assert invoice.amount_paid == 138.0
    assert invoice.balance == 500.0

    with pytest.raises(ValidationError) as exc_info:
        manager.register_payment(invoice.id, {'amount': 500.01}, NOW)
    assert 'amount' in exc_info.value.errors

    run_in_transaction(lambda: manager.register_payment(invoice.id, {'amount': 500.0}, NOW))
    invoice = manager.get_invoice(invoice.id)
    assert invoice.status == 'paid'
    assert invoice.balance == 0
    assert len(invoice.payments) == 2

    with pytest.raises(StateError):
        manager.register_payment(invoice.id, {'amount': 1.0}, NOW)


@pytest.mark.parametrize('amount', [0, -10, 'lots', None])
def test_payment_amount_must_be_positive(ctx, amount):
    manager = InvoiceManager()
    invoice = _create(manager)
    with pytest.raises(ValidationError):
        manager.register_payment(invoice.id, {'amount': amount}, NOW)


def test_overdue_sweep(ctx):
    manager = InvoiceManager()
    due_soon = _create(manager)
    overdue = _create(manager, due_date=(NOW + timedelta(days=5)).isoformat())
    no_due_date = _create(manager, due_date=None)

    later = NOW + timedelta(days=10)
    assert run_in_transaction(lambda: manager.mark_overdue_invoices(later)) == [overdue.id]
    assert run_in_transaction(lambda: manager.mark_overdue_invoices(later)) == []
    assert manager.get_invoice(due_soon.id).status == 'pending'
    assert manager.get_invoice(no_due_date.id).status == 'pending'

    run_in_transaction(lambda: manager.register_payment(overdue.id, {'amount': 100.0}, later))
    assert manager.get_invoice(overdue.id).status == 'overdue'

    run_in_transaction(lambda: manager.register_payment(overdue.id, {'amount': 538.0}, later))
    assert manager.get_invoice(overdue.id).status == 'paid'


def test_cancel_invoice(ctx):
    manager = InvoiceManager()
    invoice = _create(manager)
    cancelled = run_in_transaction(lambda: manager.cancel_invoice(invoice.id))
    assert cancelled.status == 'cancelled'

    with pytest.raises(StateError):
        manager.register_payment(invoice.id, {'amount': 10.0}, NOW)


def test_cancel_invoice_with_payments_fails(ctx):
    manager = InvoiceManager()
    invoice = _create(manager)
    run_in_transaction(lambda: manager.register_payment(invoice.id, {'amount': 10.0}, NOW))
    with pytest.raises(StateError):
        manager.cancel_invoice(invoice.id)
