"""
Unit-of-work helper used at the request boundary.

Managers in the business layer only flush; the caller wraps them in
:func:`run_in_transaction`, which commits once, rolls back on any error and
retries the whole unit when an optimistic version check fails or when two
writers drew the same document number.
"""

from flask import current_app
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import StaleDataError

from backoffice import db
from backoffice.buisness.core.exceptions import ConflictError
from backoffice.utils.logger import get_logger

logger = get_logger("backoffice.buisness.core.transaction")

DEFAULT_MAX_RETRIES = 3

# Unique columns filled by next_document_number; a clash on one is a lost race
DOCUMENT_NUMBER_COLUMNS = ('quote_number', 'sale_number', 'invoice_number')


def is_document_number_clash(error):
    message = str(getattr(error, 'orig', None) or error)
    return any(column in message for column in DOCUMENT_NUMBER_COLUMNS)


def run_in_transaction(work, *, max_retries=None, session=None):
    """
    Run ``work()`` and commit its changes atomically.

    Args:
        work: Zero-argument callable performing the flushes
        max_retries: Attempts before giving up on version conflicts
            (defaults to ``STOCK_ADJUST_MAX_RETRIES``)
        session: Session to commit (defaults to ``db.session``)

    Returns:
        Whatever ``work()`` returned on the successful attempt

    Raises:
        ConflictError: every attempt lost a concurrent-update race
    """
    session = session or db.session
    if max_retries is None:
        max_retries = current_app.config.get('STOCK_ADJUST_MAX_RETRIES', DEFAULT_MAX_RETRIES)
    max_retries = max(1, int(max_retries))

    for attempt in range(1, max_retries + 1):
        try:
            result = work()
            session.commit()
            return result
        except StaleDataError as e:
            session.rollback()
            logger.warning(f"Concurrent update detected (attempt {attempt}/{max_retries}): {e}")
        except IntegrityError as e:
            session.rollback()
            if not is_document_number_clash(e):
                raise
            logger.warning(f"Document number already taken (attempt {attempt}/{max_retries}): {e.orig}")
        except Exception:
            session.rollback()
            raise

    raise ConflictError(
        f"The record was modified concurrently; gave up after {max_retries} attempts"
    )
