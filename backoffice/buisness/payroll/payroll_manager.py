from __future__ import annotations

from datetime import datetime

from backoffice import db
from backoffice.buisness.core.exceptions import NotFoundError, StateError, ValidationError
from backoffice.buisness.core.validation import (
    coerce_id,
    coerce_number,
    money,
    optional_text,
    require_datetime,
    require_text,
)
from backoffice.data.payroll.employee import Employee
from backoffice.data.payroll.payroll_record import PayrollRecord
from backoffice.utils.logger import get_logger

logger = get_logger("backoffice.buisness.payroll.payroll_manager")


def compute_total_paid(base_salary, bonuses, advances, deductions) -> float:
    return money(base_salary + bonuses - advances - deductions)


class PayrollManager:
    """
    Employees and salary payments.

    ``Employee.total_paid`` is the running sum of the employee's payroll
    records and is only changed by :meth:`record_payment`. Employees are
    deactivated instead of deleted so their payment history stays intact.
    """

    def __init__(self, user_id: int | None = None):
        self.user_id = user_id

    def get_employee(self, employee_id) -> Employee:
        employee_id = coerce_id(employee_id, 'employee_id')
        employee = db.session.get(Employee, employee_id)
        if employee is None:
            raise NotFoundError('Employee', employee_id)
        return employee

    def list_employees(self, include_inactive=False) -> list[Employee]:
        query = Employee.query
        if not include_inactive:
            query = query.filter_by(is_active=True)
        return query.order_by(Employee.name).all()

    def _employee_values(self, data: dict, *, partial: bool) -> dict:
        values = {}
        if not partial or 'name' in data:
            values['name'] = require_text(data.get('name'), 'name', max_length=200)
        if not partial or 'position' in data:
            values['position'] = require_text(data.get('position'), 'position', max_length=100)
        if not partial or 'monthly_salary' in data:
            values['monthly_salary'] = money(
                coerce_number(data.get('monthly_salary'), 'monthly_salary', non_negative=True)
            )
        for name in ('advances', 'bonuses'):
            if not partial or name in data:
                values[name] = money(coerce_number(data.get(name), name, non_negative=True, default=0))
        return values

    def create_employee(self, data: dict) -> Employee:
        if data.get('total_paid') not in (None, 0, '0'):
            raise ValidationError.for_field('total_paid', "total_paid is derived from payroll records")
        employee = Employee(
            created_by_id=self.user_id,
            updated_by_id=self.user_id,
            **self._employee_values(data, partial=False),
        )
        db.session.add(employee)
        db.session.flush()
        logger.info(f"Registered employee {employee.id}: {employee.name} ({employee.position})")
        return employee

    def update_employee(self, employee_id, data: dict) -> Employee:
        if 'total_paid' in data:
            raise ValidationError.for_field('total_paid', "total_paid is derived from payroll records")
        employee = self.get_employee(employee_id)
        for key, value in self._employee_values(data, partial=True).items():
            setattr(employee, key, value)
        if 'is_active' in data:
            if not isinstance(data['is_active'], bool):
                raise ValidationError.for_field('is_active', "is_active must be true or false")
            employee.is_active = data['is_active']
        employee.updated_by_id = self.user_id
        db.session.flush()
        logger.info(f"Updated employee {employee.id}")
        return employee

    def deactivate_employee(self, employee_id) -> Employee:
        employee = self.get_employee(employee_id)
        if not employee.is_active:
            raise StateError(f"Employee {employee.id} is already inactive")
        employee.is_active = False
        employee.updated_by_id = self.user_id
        db.session.flush()
        logger.info(f"Deactivated employee {employee.id}")
        return employee

    def record_payment(self, data: dict, now: datetime | None = None) -> PayrollRecord:
        """
        Record a salary payment and add it to the employee's total paid.

        ``base_salary`` defaults to the employee's monthly salary.

        Raises:
            NotFoundError: unknown employee
            StateError: the employee is inactive
            ValidationError: malformed amounts or a negative net payment
        """
        now = now or datetime.utcnow()
        employee = self.get_employee(data.get('employee_id'))
        if not employee.is_active:
            raise StateError(f"Employee {employee.id} is inactive and cannot be paid")

        base_salary = money(coerce_number(
            data.get('base_salary'), 'base_salary', non_negative=True, default=employee.monthly_salary
        ))
        advances = money(coerce_number(data.get('advances'), 'advances', non_negative=True, default=0))
        bonuses = money(coerce_number(data.get('bonuses'), 'bonuses', non_negative=True, default=0))
        deductions = money(coerce_number(data.get('deductions'), 'deductions', non_negative=True, default=0))

        total_paid = compute_total_paid(base_salary, bonuses, advances, deductions)
        if total_paid < 0:
            raise ValidationError.for_field(
                'deductions', "Advances and deductions exceed the salary and bonuses"
            )

        pay_date = data.get('pay_date')
        record = PayrollRecord(
            employee_id=employee.id,
            pay_date=require_datetime(pay_date, 'pay_date') if pay_date else now,
            base_salary=base_salary,
            advances=advances,
            bonuses=bonuses,
            deductions=deductions,
            total_paid=total_paid,
            notes=optional_text(data.get('notes'), 'notes'),
            created_by_id=self.user_id,
            updated_by_id=self.user_id,
        )
        db.session.add(record)
        employee.total_paid = money((employee.total_paid or 0.0) + total_paid)
        db.session.flush()

        logger.info(f"Paid employee {employee.id} {total_paid} on {record.pay_date:%Y-%m-%d}")
        return record

    def payroll_records(self, employee_id=None) -> list[PayrollRecord]:
        query = PayrollRecord.query
        if employee_id is not None:
            query = query.filter_by(employee_id=self.get_employee(employee_id).id)
        return query.order_by(PayrollRecord.pay_date.desc(), PayrollRecord.id.desc()).all()
