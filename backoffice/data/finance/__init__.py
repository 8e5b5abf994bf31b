"""
Finance models: sales, purchases, incomes, expenses and receivables
"""

from .sale import Sale, SaleItem
from .purchase import Purchase
from .income import Income
from .expense import Expense
from .invoice import Invoice, InvoiceItem, InvoicePayment

__all__ = [
    'Sale',
    'SaleItem',
    'Purchase',
    'Income',
    'Expense',
    'Invoice',
    'InvoiceItem',
    'InvoicePayment',
]
