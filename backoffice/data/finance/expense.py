from datetime import datetime

from backoffice import db
from backoffice.data.core.user_created_base import UserCreatedBase


class Expense(UserCreatedBase):
    __tablename__ = 'expenses'

    date = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, index=True)
    category = db.Column(db.String(100), nullable=False)
    description = db.Column(db.String(255), nullable=False)
    amount = db.Column(db.Float, nullable=False)
    payment_method = db.Column(db.String(30), nullable=False, default='cash')
    receipt = db.Column(db.String(100), nullable=True)

    def __repr__(self):
        return f'<Expense {self.category}: {self.amount}>'
