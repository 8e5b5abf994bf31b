"""
Read-only financial summaries derived from the ledgers.

Monthly profitability sums incomes and sales against expenses and purchases
over ``[first day of month, first day of next month)``. Receivables aging
places each outstanding invoice balance into exactly one bucket by the days
elapsed since its due date (or issue date when it has none). Category and
supplier breakdowns back the expense and purchase overviews.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime

from sqlalchemy import func

from backoffice import db
from backoffice.buisness.core.exceptions import ValidationError
from backoffice.buisness.core.validation import money
from backoffice.data.finance.expense import Expense
from backoffice.data.finance.income import Income
from backoffice.data.finance.invoice import INVOICE_OVERDUE, OUTSTANDING_STATUSES, Invoice
from backoffice.data.finance.purchase import Purchase
from backoffice.data.finance.sale import Sale

BUCKET_CURRENT = 'current'
BUCKET_30_TO_60 = 'days30to60'
BUCKET_61_TO_90 = 'days61to90'
BUCKET_OVER_90 = 'over90days'
AGING_BUCKETS = (BUCKET_CURRENT, BUCKET_30_TO_60, BUCKET_61_TO_90, BUCKET_OVER_90)


def month_window(year: int, month: int) -> tuple[datetime, datetime]:
    if not 1 <= month <= 12:
        raise ValidationError.for_field('month', "month must be between 1 and 12")
    if not 1900 <= year <= 9998:
        raise ValidationError.for_field('year', "year is out of range")
    start = datetime(year, month, 1)
    end = datetime(year + 1, 1, 1) if month == 12 else datetime(year, month + 1, 1)
    return start, end


def _sum_between(column, date_column, start, end) -> float:
    total = (
        db.session.query(func.coalesce(func.sum(column), 0.0))
        .filter(date_column >= start, date_column < end)
        .scalar()
    )
    return money(total)


@dataclass(frozen=True)
class MonthlyProfitability:
    year: int
    month: int
    income_total: float
    sales_total: float
    expense_total: float
    purchase_total: float
    revenue: float
    expenses: float
    profit: float
    profit_margin: float

    def to_dict(self) -> dict:
        return asdict(self)


def monthly_profitability(year: int, month: int) -> MonthlyProfitability:
    start, end = month_window(year, month)

    income_total = _sum_between(Income.total, Income.date, start, end)
    sales_total = _sum_between(Sale.total, Sale.sale_date, start, end)
    expense_total = _sum_between(Expense.amount, Expense.date, start, end)
    purchase_total = _sum_between(Purchase.total_amount, Purchase.date, start, end)

    revenue = money(income_total + sales_total)
    expenses = money(expense_total + purchase_total)
    profit = money(revenue - expenses)
    profit_margin = round(profit / revenue * 100, 2) if revenue else 0.0

    return MonthlyProfitability(
        year=year,
        month=month,
        income_total=income_total,
        sales_total=sales_total,
        expense_total=expense_total,
        purchase_total=purchase_total,
        revenue=revenue,
        expenses=expenses,
        profit=profit,
        profit_margin=profit_margin,
    )


def profitability_series(months: int = 6, now: datetime | None = None) -> list[MonthlyProfitability]:
    """Trailing ``months`` months ending with the month of ``now``, oldest first."""
    if months < 1 or months > 60:
        raise ValidationError.for_field('months', "months must be between 1 and 60")
    now = now or datetime.utcnow()

    series = []
    year, month = now.year, now.month
    for _ in range(months):
        series.append(monthly_profitability(year, month))
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    series.reverse()
    return series


def bucket_for_days(days_since: int) -> str:
    if days_since <= 30:
        return BUCKET_CURRENT
    if days_since <= 60:
        return BUCKET_30_TO_60
    if days_since <= 90:
        return BUCKET_61_TO_90
    return BUCKET_OVER_90


@dataclass
class AgingReport:
    current: float = 0.0
    days30to60: float = 0.0
    days61to90: float = 0.0
    over90days: float = 0.0
    total: float = 0.0
    invoice_count: int = 0

    def add(self, bucket: str, balance: float) -> None:
        setattr(self, bucket, money(getattr(self, bucket) + balance))
        self.total = money(self.total + balance)
        self.invoice_count += 1

    def to_dict(self) -> dict:
        return asdict(self)


def age_receivables(entries, now: datetime) -> AgingReport:
    """
    Bucket ``(reference_date, balance)`` pairs.

    Not-yet-due balances fall in ``current``; non-positive balances are skipped.
    """
    report = AgingReport()
    for reference_date, balance in entries:
        if balance is None or balance <= 0:
            continue
        days_since = (now - reference_date).days
        report.add(bucket_for_days(days_since), balance)
    return report


def outstanding_invoices() -> list[Invoice]:
    invoices = (
        Invoice.query
        .filter(Invoice.status.in_(OUTSTANDING_STATUSES))
        .order_by(Invoice.due_date, Invoice.id)
        .all()
    )
    return [invoice for invoice in invoices if invoice.balance > 0]


def accounts_receivable_aging(now: datetime | None = None) -> AgingReport:
    now = now or datetime.utcnow()
    return age_receivables(
        ((invoice.aging_reference_date, invoice.balance) for invoice in outstanding_invoices()),
        now,
    )


def receivables_summary(now: datetime | None = None) -> dict:
    """Outstanding and overdue totals for the receivables overview."""
    now = now or datetime.utcnow()
    invoices = outstanding_invoices()
    overdue = [
        invoice for invoice in invoices
        if invoice.status == INVOICE_OVERDUE or (invoice.due_date is not None and invoice.due_date < now)
    ]
    return {
        'total_outstanding': money(sum(invoice.balance for invoice in invoices)),
        'total_overdue': money(sum(invoice.balance for invoice in overdue)),
        'pending_invoices_count': len(invoices),
        'overdue_invoices_count': len(overdue),
    }


def expenses_by_category(start: datetime | None = None, end: datetime | None = None) -> list[dict]:
    """Expense totals per category, largest first."""
    total = func.coalesce(func.sum(Expense.amount), 0.0)
    query = db.session.query(Expense.category, total, func.count(Expense.id))
    if start is not None:
        query = query.filter(Expense.date >= start)
    if end is not None:
        query = query.filter(Expense.date < end)
    rows = query.group_by(Expense.category).order_by(total.desc(), Expense.category).all()
    return [
        {'category': category, 'total': money(amount), 'count': count}
        for category, amount, count in rows
    ]


def purchase_stats(now: datetime | None = None, top_suppliers: int = 5) -> dict:
    now = now or datetime.utcnow()
    start, end = month_window(now.year, now.month)

    count, total = db.session.query(
        func.count(Purchase.id),
        func.coalesce(func.sum(Purchase.total_amount), 0.0),
    ).one()
    linked = Purchase.query.filter(Purchase.inventory_id.isnot(None)).count()

    supplier_total = func.sum(Purchase.total_amount)
    suppliers = (
        db.session.query(Purchase.supplier, supplier_total, func.count(Purchase.id))
        .group_by(Purchase.supplier)
        .order_by(supplier_total.desc(), Purchase.supplier)
        .limit(top_suppliers)
        .all()
    )
    return {
        'total_purchases': count,
        'total_amount': money(total),
        'month_total': _sum_between(Purchase.total_amount, Purchase.date, start, end),
        'linked_to_inventory': linked,
        'top_suppliers': [
            {'supplier': supplier, 'total': money(amount), 'count': purchases}
            for supplier, amount, purchases in suppliers
        ],
    }
