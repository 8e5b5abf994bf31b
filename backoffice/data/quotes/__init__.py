"""
Quote models: quotations and their line items
"""

from .quote import Quote
from .quote_item import QuoteItem

__all__ = [
    'Quote',
    'QuoteItem',
]
