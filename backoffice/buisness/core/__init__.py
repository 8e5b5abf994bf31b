from backoffice.buisness.core.exceptions import (
    BackOfficeError,
    ConflictError,
    NotFoundError,
    StateError,
    ValidationError,
)
from backoffice.buisness.core.transaction import run_in_transaction

__all__ = [
    'BackOfficeError',
    'ConflictError',
    'NotFoundError',
    'StateError',
    'ValidationError',
    'run_in_transaction',
]
