from backoffice import db
from backoffice.data.core.user_created_base import UserCreatedBase


class Employee(UserCreatedBase):
    """Staff member on the payroll; deactivated rather than deleted"""
    __tablename__ = 'employees'

    name = db.Column(db.String(200), nullable=False)
    position = db.Column(db.String(100), nullable=False)
    monthly_salary = db.Column(db.Float, nullable=False)
    advances = db.Column(db.Float, nullable=False, default=0.0)
    bonuses = db.Column(db.Float, nullable=False, default=0.0)
    # Running sum of PayrollRecord.total_paid, maintained by PayrollManager
    total_paid = db.Column(db.Float, nullable=False, default=0.0)
    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    payroll_records = db.relationship('PayrollRecord', back_populates='employee')

    def __repr__(self):
        return f'<Employee {self.name} ({self.position})>'
