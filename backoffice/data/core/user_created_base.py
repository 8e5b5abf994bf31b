from backoffice import db
from datetime import datetime
from sqlalchemy.orm import declared_attr
from backoffice.buisness.core.data_insertion_mixin import DataInsertionMixin


class UserCreatedBase(db.Model, DataInsertionMixin):
    """Abstract base class for back-office records that carry an audit trail"""

    __abstract__ = True

    @declared_attr
    def __tablename__(cls):
        return cls.__name__.lower() + 's'

    id = db.Column(db.Integer, primary_key=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    created_by_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    updated_by_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)

    @declared_attr
    def created_by(cls):
        return db.relationship('User', foreign_keys=f'{cls.__name__}.created_by_id')

    @declared_attr
    def updated_by(cls):
        return db.relationship('User', foreign_keys=f'{cls.__name__}.updated_by_id')
