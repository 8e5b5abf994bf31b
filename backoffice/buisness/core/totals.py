"""
Document totals shared by quotes, sales and invoices.

Totals are always derived here from the line items; amounts sent by a client
are never stored.
"""

from __future__ import annotations

from dataclasses import dataclass

from backoffice.buisness.core.exceptions import ValidationError
from backoffice.buisness.core.validation import coerce_number, money


@dataclass(frozen=True)
class DocumentTotals:
    subtotal: float
    tax_rate: float
    tax_amount: float
    discount_amount: float
    total: float

    def apply_to(self, document) -> None:
        document.subtotal = self.subtotal
        document.tax_rate = self.tax_rate
        document.tax_amount = self.tax_amount
        document.discount_amount = self.discount_amount
        document.total = self.total


def line_subtotal(quantity: float, unit_price: float) -> float:
    return money(quantity * unit_price)


def compute_totals(line_subtotals, tax_rate=0.0, discount_amount=0.0) -> DocumentTotals:
    """
    subtotal = sum(lines); tax = (subtotal - discount) * rate / 100;
    total = subtotal - discount + tax
    """
    tax_rate = coerce_number(tax_rate, 'tax_rate', non_negative=True, default=0)
    discount_amount = coerce_number(discount_amount, 'discount_amount', non_negative=True, default=0)
    if tax_rate > 100:
        raise ValidationError.for_field('tax_rate', "tax_rate cannot exceed 100")

    subtotal = money(sum(line_subtotals))
    if discount_amount > subtotal:
        raise ValidationError.for_field('discount_amount', "discount_amount cannot exceed the subtotal")

    taxable = subtotal - discount_amount
    tax_amount = money(taxable * tax_rate / 100)
    return DocumentTotals(
        subtotal=subtotal,
        tax_rate=tax_rate,
        tax_amount=tax_amount,
        discount_amount=money(discount_amount),
        total=money(taxable + tax_amount),
    )
