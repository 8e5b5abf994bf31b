from datetime import datetime

from backoffice import db
from backoffice.data.core.user_created_base import UserCreatedBase


class PayrollRecord(UserCreatedBase):
    """
    One salary payment.

    ``total_paid = base_salary + bonuses - advances - deductions``
    """
    __tablename__ = 'payroll_records'

    employee_id = db.Column(db.Integer, db.ForeignKey('employees.id'), nullable=False, index=True)
    pay_date = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, index=True)
    base_salary = db.Column(db.Float, nullable=False)
    advances = db.Column(db.Float, nullable=False, default=0.0)
    bonuses = db.Column(db.Float, nullable=False, default=0.0)
    deductions = db.Column(db.Float, nullable=False, default=0.0)
    total_paid = db.Column(db.Float, nullable=False)
    notes = db.Column(db.Text, nullable=True)

    employee = db.relationship('Employee', back_populates='payroll_records')

    def __repr__(self):
        return f'<PayrollRecord employee={self.employee_id} {self.pay_date:%Y-%m-%d}: {self.total_paid}>'

    def to_dict(self, include_audit_fields=True, exclude=None):
        data = super().to_dict(include_audit_fields=include_audit_fields, exclude=exclude)
        data['employee_name'] = self.employee.name if self.employee else None
        return data
