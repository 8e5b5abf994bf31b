from datetime import datetime

from backoffice import db
from backoffice.data.core.user_created_base import UserCreatedBase


class Income(UserCreatedBase):
    __tablename__ = 'incomes'

    date = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, index=True)
    client = db.Column(db.String(200), nullable=False)
    product_service = db.Column(db.String(200), nullable=False)
    quantity = db.Column(db.Float, nullable=False, default=1.0)
    unit_price = db.Column(db.Float, nullable=False)
    total = db.Column(db.Float, nullable=False)
    payment_method = db.Column(db.String(30), nullable=False, default='cash')
    observations = db.Column(db.Text, nullable=True)

    def __repr__(self):
        return f'<Income {self.client}: {self.total}>'
