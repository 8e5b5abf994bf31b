from __future__ import annotations

from datetime import datetime

from flask import current_app

from backoffice import db
from backoffice.buisness.core.exceptions import NotFoundError, StateError, ValidationError
from backoffice.buisness.core.numbering import next_document_number
from backoffice.buisness.core.totals import compute_totals, line_subtotal
from backoffice.buisness.core.validation import (
    coerce_id,
    coerce_number,
    money,
    optional_text,
    parse_datetime,
    require_text,
)
from backoffice.buisness.finance.sales_manager import SalesManager
from backoffice.buisness.inventory.stock_ledger import StockLedger
from backoffice.buisness.quotes.quote_dates import DEFAULT_VALIDITY_DAYS, suggest_valid_until, validate_dates
from backoffice.buisness.quotes.quote_status import (
    EDITABLE_STATUSES,
    INITIAL_STATUSES,
    TERMINAL_STATUSES,
    QuoteStatus,
    can_quote_be_converted,
    check_transition,
)
from backoffice.data.quotes.quote import Quote
from backoffice.data.quotes.quote_item import QuoteItem
from backoffice.utils.logger import get_logger

logger = get_logger("backoffice.buisness.quotes.quote_manager")

QUOTE_PREFIX = 'COT-'

CUSTOMER_FIELDS = {
    'customer_name': 200,
    'customer_email': 120,
    'customer_phone': 40,
    'customer_address': None,
}


def recompute_totals(quote: Quote) -> Quote:
    """Derive line subtotals and document totals from the quote's items."""
    for item in quote.items:
        item.subtotal = line_subtotal(item.quantity, item.unit_price)
    compute_totals(
        [item.subtotal for item in quote.items],
        quote.tax_rate,
        quote.discount_amount,
    ).apply_to(quote)
    return quote


class QuoteManager:
    """
    Quote lifecycle: creation, edits while still open, user-driven status
    changes, conversion into a sale and the expiry sweep.
    """

    def __init__(self, user_id: int | None = None):
        self.user_id = user_id
        self.ledger = StockLedger(user_id)

    def get_quote(self, quote_id) -> Quote:
        quote_id = coerce_id(quote_id, 'quote_id')
        quote = db.session.get(Quote, quote_id)
        if quote is None:
            raise NotFoundError('Quote', quote_id)
        return quote

    def _build_items(self, raw_items) -> list[QuoteItem]:
        if not isinstance(raw_items, list) or not raw_items:
            raise ValidationError.for_field('items', "A quote needs at least one item")

        items = []
        for index, raw in enumerate(raw_items):
            if not isinstance(raw, dict):
                raise ValidationError.for_field('items', f"Item {index + 1} is malformed")
            product = self.ledger.get_item(raw.get('inventory_id'))
            quantity = coerce_number(raw.get('quantity'), 'quantity', positive=True)
            unit_price = coerce_number(
                raw.get('unit_price'), 'unit_price', non_negative=True, default=product.sale_price
            )
            items.append(QuoteItem(
                inventory_id=product.id,
                product_name=optional_text(raw.get('product_name'), 'product_name', max_length=200)
                or product.product_name,
                description=optional_text(raw.get('description'), 'description'),
                quantity=quantity,
                unit_price=money(unit_price),
                created_by_id=self.user_id,
                updated_by_id=self.user_id,
            ))
        return items

    def _check_dates(self, quote_date, valid_until, now):
        result = validate_dates(quote_date, valid_until, now)
        if not result.is_valid:
            raise ValidationError(
                "; ".join(result.errors),
                errors={'valid_until': result.errors},
            )
        for warning in result.warnings:
            logger.info(f"Quote date warning: {warning}")
        return result

    def create_quote(self, data: dict, now: datetime | None = None) -> Quote:
        """
        Create a quote in ``draft`` (default) or ``sent``.

        Client-sent totals are ignored; they are recomputed from the items.
        """
        now = now or datetime.utcnow()

        status = QuoteStatus.parse(data.get('status') or QuoteStatus.DRAFT)
        if status not in INITIAL_STATUSES:
            raise StateError(f"A new quote must start as 'draft' or 'sent', not '{status.value}'")

        quote_date = parse_datetime(data.get('quote_date')) if data.get('quote_date') else now
        if data.get('valid_until'):
            valid_until = data.get('valid_until')
        else:
            days = current_app.config.get('QUOTE_DEFAULT_VALIDITY_DAYS', DEFAULT_VALIDITY_DAYS)
            valid_until = suggest_valid_until(quote_date, days)
        self._check_dates(data.get('quote_date') or quote_date, valid_until, now)

        quote = Quote(
            quote_number=next_document_number(Quote.quote_number, QUOTE_PREFIX, now),
            quote_date=quote_date,
            valid_until=parse_datetime(valid_until),
            status=status.value,
            tax_rate=data.get('tax_rate') or 0.0,
            discount_amount=data.get('discount_amount') or 0.0,
            notes=optional_text(data.get('notes'), 'notes'),
            terms=optional_text(data.get('terms'), 'terms'),
            created_by_id=self.user_id,
            updated_by_id=self.user_id,
        )
        self._apply_customer(quote, data, partial=False)
        quote.items = self._build_items(data.get('items'))
        recompute_totals(quote)

        db.session.add(quote)
        db.session.flush()
        logger.info(f"Created quote {quote.quote_number} ({quote.status}) total {quote.total}")
        return quote

    def _apply_customer(self, quote, data, *, partial):
        for name, max_length in CUSTOMER_FIELDS.items():
            if partial and name not in data:
                continue
            if name == 'customer_name':
                value = require_text(data.get(name), name, max_length=max_length)
            else:
                value = optional_text(data.get(name), name, max_length=max_length)
            setattr(quote, name, value)

    def update_quote(self, quote_id, data: dict, now: datetime | None = None) -> Quote:
        """Edit an open quote; items, when given, replace the existing ones."""
        now = now or datetime.utcnow()
        quote = self.get_quote(quote_id)
        if QuoteStatus.parse(quote.status) not in EDITABLE_STATUSES:
            raise StateError(f"Quote {quote.quote_number} is '{quote.status}' and can no longer be edited")

        if 'quote_date' in data or 'valid_until' in data:
            quote_date = data.get('quote_date', quote.quote_date)
            valid_until = data.get('valid_until', quote.valid_until)
            self._check_dates(quote_date, valid_until, now)
            quote.quote_date = parse_datetime(quote_date)
            quote.valid_until = parse_datetime(valid_until)

        self._apply_customer(quote, data, partial=True)
        for name in ('notes', 'terms'):
            if name in data:
                setattr(quote, name, optional_text(data.get(name), name))
        if 'tax_rate' in data:
            quote.tax_rate = data.get('tax_rate') or 0.0
        if 'discount_amount' in data:
            quote.discount_amount = data.get('discount_amount') or 0.0
        if 'items' in data:
            quote.items = self._build_items(data.get('items'))

        recompute_totals(quote)
        quote.updated_by_id = self.user_id
        db.session.flush()
        logger.info(f"Updated quote {quote.quote_number}")
        return quote

    def delete_quote(self, quote_id) -> None:
        quote = self.get_quote(quote_id)
        if quote.status == QuoteStatus.CONVERTED.value:
            raise StateError(f"Quote {quote.quote_number} was converted to a sale and cannot be deleted")
        db.session.delete(quote)
        db.session.flush()
        logger.info(f"Deleted quote {quote.quote_number}")

    def change_status(self, quote_id, status, now: datetime | None = None, **sale_options) -> Quote:
        """
        Apply a user-requested status change through the transition table.

        Moving to ``converted`` performs the full conversion into a sale.
        """
        now = now or datetime.utcnow()
        quote = self.get_quote(quote_id)
        target = QuoteStatus.parse(status)
        if target is QuoteStatus.CONVERTED:
            self.convert_to_sale(quote.id, now, **sale_options)
            return quote

        check_transition(quote.status, target, quote.valid_until, now)
        previous = quote.status
        quote.status = target.value
        quote.updated_by_id = self.user_id
        db.session.flush()
        logger.info(f"Quote {quote.quote_number} status {previous} -> {target.value}")
        return quote

    def convert_to_sale(self, quote_id, now: datetime | None = None, payment_method=None):
        """
        Turn an accepted, unexpired quote into a sale.

        The sale, the stock decrements and the status change are flushed in
        the caller's transaction.

        Raises:
            StateError: the quote is not accepted or its validity has ended
            ValidationError: a line asks for more than is in stock
        """
        now = now or datetime.utcnow()
        quote = self.get_quote(quote_id)

        if quote.status != QuoteStatus.ACCEPTED.value:
            raise StateError("Only accepted quotes can be converted to a sale")
        if not can_quote_be_converted(quote.status, quote.valid_until, now):
            raise StateError("The quote has expired and cannot be converted to a sale")

        sales = SalesManager(self.user_id)
        sale = sales.record_sale(
            {
                'customer_name': quote.customer_name,
                'items': [
                    {
                        'inventory_id': item.inventory_id,
                        'product_name': item.product_name,
                        'quantity': item.quantity,
                        'unit_price': item.unit_price,
                    }
                    for item in quote.items
                ],
                'tax_rate': quote.tax_rate,
                'discount_amount': quote.discount_amount,
                'payment_method': payment_method,
                'notes': f"Converted from quote {quote.quote_number}",
            },
            now,
            quote_id=quote.id,
        )

        quote.status = QuoteStatus.CONVERTED.value
        quote.converted_sale_id = sale.id
        quote.updated_by_id = self.user_id
        db.session.flush()
        logger.info(f"Quote {quote.quote_number} converted to sale {sale.sale_number}")
        return sale

    def check_expired_quotes(self, now: datetime | None = None) -> list[int]:
        """
        Expire every open quote whose validity has passed.

        Running it again with the same ``now`` changes nothing.

        Returns:
            Ids of the quotes moved to ``expired`` by this call
        """
        now = now or datetime.utcnow()
        closed = {status.value for status in TERMINAL_STATUSES} | {QuoteStatus.EXPIRED.value}

        quotes = (
            Quote.query
            .filter(Quote.status.notin_(closed))
            .filter(Quote.valid_until < now)
            .order_by(Quote.id)
            .all()
        )
        for quote in quotes:
            quote.status = QuoteStatus.EXPIRED.value
        db.session.flush()

        expired_ids = [quote.id for quote in quotes]
        if expired_ids:
            logger.info(f"Expired {len(expired_ids)} quote(s): {expired_ids}")
        else:
            logger.debug("Expiry sweep found no quotes to expire")
        return expired_ids
