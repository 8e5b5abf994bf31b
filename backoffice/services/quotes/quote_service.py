"""
Quote Service
Read-side queries for quote listings and status statistics.
"""

from typing import Dict, List, Optional, Any
from datetime import datetime
from sqlalchemy import func
from backoffice import db
from backoffice.data.quotes.quote import Quote
from backoffice.buisness.quotes.quote_dates import get_expiry_status
from backoffice.buisness.quotes.quote_status import QuoteStatus, TERMINAL_STATUSES


class QuoteService:

    @staticmethod
    def list_quotes(status: Optional[str] = None, search: Optional[str] = None) -> List[Quote]:
        query = Quote.query
        if status:
            query = query.filter_by(status=QuoteStatus.parse(status).value)
        if search:
            pattern = f"%{search}%"
            query = query.filter(
                (Quote.customer_name.ilike(pattern)) | (Quote.quote_number.ilike(pattern))
            )
        return query.order_by(Quote.quote_date.desc(), Quote.id.desc()).all()

    @staticmethod
    def quote_to_dict(quote: Quote, now: Optional[datetime] = None, include_items: bool = False) -> Dict[str, Any]:
        """Serialize a quote with its expiry classification for open quotes."""
        data = quote.to_dict(include_items=include_items)
        status = QuoteStatus.parse(quote.status)
        if status not in TERMINAL_STATUSES:
            data['expiry'] = get_expiry_status(quote.valid_until, now or datetime.utcnow()).to_dict()
        return data

    @staticmethod
    def get_stats() -> Dict[str, Any]:
        """Count and total value of quotes per status, plus the conversion rate."""
        rows = (
            db.session.query(Quote.status, func.count(Quote.id), func.coalesce(func.sum(Quote.total), 0.0))
            .group_by(Quote.status)
            .all()
        )
        by_status = {status.value: {'count': 0, 'value': 0.0} for status in QuoteStatus}
        for status, count, value in rows:
            by_status[status] = {'count': count, 'value': round(value, 2)}

        total = sum(entry['count'] for entry in by_status.values())
        converted = by_status[QuoteStatus.CONVERTED.value]['count']
        return {
            'total': total,
            'by_status': by_status,
            'total_value': round(sum(entry['value'] for entry in by_status.values()), 2),
            'conversion_rate': round(converted / total * 100, 2) if total else 0.0,
        }
