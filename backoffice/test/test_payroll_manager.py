"""
Tests for employees and salary payments
"""
from datetime import datetime

import pytest

from backoffice.buisness.core.exceptions import NotFoundError, StateError, ValidationError
from backoffice.buisness.core.transaction import run_in_transaction
from backoffice.buisness.payroll.payroll_manager import PayrollManager, compute_total_paid
from backoffice.data.payroll.payroll_record import PayrollRecord

NOW = datetime(2024, 3, 31, 9, 0)


@pytest.fixture
def employee(ctx):
    return run_in_transaction(lambda: PayrollManager().create_employee({
        'name': 'Ana Ruiz', 'position': 'Cashier', 'monthly_salary': 1200,
    }))


def test_total_paid_formula():
    assert compute_total_paid(1000.0, 150.0, 200.0, 50.5) == 899.5


def test_payment_defaults_to_monthly_salary(employee):
    manager = PayrollManager()
    record = run_in_transaction(lambda: manager.record_payment({
        'employee_id': employee.id, 'bonuses': 100, 'advances': 250, 'deductions': 30,
    }, NOW))

    assert record.base_salary == 1200.0
    assert record.total_paid == 1020.0
    assert record.pay_date == NOW
    assert record.to_dict()['employee_name'] == 'Ana Ruiz'


def test_employee_total_paid_accumulates(employee):
    manager = PayrollManager()
    employee_id = employee.id
    run_in_transaction(lambda: manager.record_payment({'employee_id': employee_id}, NOW))
    run_in_transaction(lambda: manager.record_payment({
        'employee_id': employee_id, 'base_salary': 600, 'pay_date': '2024-04-15',
    }, NOW))

    assert manager.get_employee(employee_id).total_paid == 1800.0
    history = manager.payroll_records(employee_id)
    assert [record.total_paid for record in history] == [600.0, 1200.0], "newest payment first"


def test_payment_cannot_go_negative(employee):
    with pytest.raises(ValidationError) as exc_info:
        PayrollManager().record_payment({'employee_id': employee.id, 'advances': 1300}, NOW)
    assert 'deductions' in exc_info.value.errors
    assert PayrollRecord.query.count() == 0


def test_payment_rejects_negative_amounts(employee):
    with pytest.raises(ValidationError) as exc_info:
        PayrollManager().record_payment({'employee_id': employee.id, 'bonuses': -5}, NOW)
    assert 'bonuses' in exc_info.value.errors


def test_inactive_employee_cannot_be_paid(employee):
    manager = PayrollManager()
    run_in_transaction(lambda: manager.deactivate_employee(employee.id))

    with pytest.raises(StateError):
        manager.record_payment({'employee_id': employee.id}, NOW)
    with pytest.raises(StateError):
        manager.deactivate_employee(employee.id)

    assert manager.list_employees() == []
    assert len(manager.list_employees(include_inactive=True)) == 1


def test_unknown_employee(ctx):
    with pytest.raises(NotFoundError):
        PayrollManager().record_payment({'employee_id': 99}, NOW)


def test_total_paid_is_read_only(employee):
    manager = PayrollManager()
    with pytest.raises(ValidationError):
        manager.update_employee(employee.id, {'total_paid': 5000})
    with pytest.raises(ValidationError):
        manager.create_employee({'name': 'Luis', 'position': 'Clerk', 'monthly_salary': 900, 'total_paid': 10})


def test_update_employee(employee):
    manager = PayrollManager()
    updated = run_in_transaction(lambda: manager.update_employee(employee.id, {
        'position': 'Supervisor', 'monthly_salary': 1500.456,
    }))
    assert updated.position == 'Supervisor'
    assert updated.monthly_salary == 1500.46
    assert updated.name == 'Ana Ruiz'

    with pytest.raises(ValidationError):
        manager.update_employee(employee.id, {'is_active': 'no'})
