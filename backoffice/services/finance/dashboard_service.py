"""
Dashboard Service
Headline numbers for the back-office dashboard.
"""

from typing import Dict, Any, Optional
from datetime import datetime
from backoffice.data.inventory.inventory_item import InventoryItem
from backoffice.data.quotes.quote import Quote
from backoffice.buisness.finance.aggregation import monthly_profitability, receivables_summary
from backoffice.buisness.inventory.stock_ledger import StockLedger
from backoffice.buisness.quotes.quote_status import QuoteStatus


class DashboardService:

    @staticmethod
    def get_stats(now: Optional[datetime] = None) -> Dict[str, Any]:
        now = now or datetime.utcnow()
        month = monthly_profitability(now.year, now.month)
        receivables = receivables_summary(now)

        open_statuses = (QuoteStatus.DRAFT.value, QuoteStatus.SENT.value, QuoteStatus.ACCEPTED.value)
        return {
            'month_revenue': month.revenue,
            'month_expenses': month.expenses,
            'month_profit': month.profit,
            'month_profit_margin': month.profit_margin,
            'inventory_items': InventoryItem.query.count(),
            'low_stock_items': len(StockLedger().low_stock_items()),
            'pending_invoices': receivables['pending_invoices_count'],
            'total_receivable': receivables['total_outstanding'],
            'open_quotes': Quote.query.filter(Quote.status.in_(open_statuses)).count(),
        }
