"""
Payroll models: employees and the payments made to them
"""

from .employee import Employee
from .payroll_record import PayrollRecord

__all__ = [
    'Employee',
    'PayrollRecord',
]
