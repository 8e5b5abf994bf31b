"""
Monthly document numbers (quotes, sales, invoices).

Numbers look like ``<prefix>YYYY-MM-NNN`` and restart every month. The next
number is derived from the highest sequence already stored for the month.
The sequence grows past ``width`` digits, so ``-1000`` follows ``-999``.
"""

from datetime import datetime

from sqlalchemy import func

from backoffice import db


def next_document_number(column, prefix='', now=None, width=3):
    now = now or datetime.utcnow()
    month_prefix = f"{prefix}{now.year}-{now.month:02d}-"

    # Longer numbers carry larger sequences; compare as text only within a length
    last_number = (
        db.session.query(column)
        .filter(column.like(f"{month_prefix}%"))
        .order_by(func.length(column).desc(), column.desc())
        .limit(1)
        .scalar()
    )

    next_sequence = 1
    if last_number:
        try:
            next_sequence = int(last_number.rsplit('-', 1)[-1]) + 1
        except ValueError:
            next_sequence = 1

    return f"{month_prefix}{next_sequence:0{width}d}"
