from __future__ import annotations

from datetime import datetime

from backoffice import db
from backoffice.buisness.core.exceptions import NotFoundError, ValidationError
from backoffice.buisness.core.numbering import next_document_number
from backoffice.buisness.core.totals import compute_totals, line_subtotal
from backoffice.buisness.core.validation import (
    coerce_id,
    coerce_number,
    money,
    optional_text,
    require_datetime,
    require_text,
)
from backoffice.buisness.inventory.stock_ledger import STOCK_PRECISION, StockLedger
from backoffice.data.finance.expense import Expense
from backoffice.data.finance.income import Income
from backoffice.data.finance.purchase import Purchase
from backoffice.data.finance.sale import Sale, SaleItem
from backoffice.utils.logger import get_logger

logger = get_logger("backoffice.buisness.finance.sales_manager")

SALE_PREFIX = 'V-'
PAYMENT_METHODS = ('cash', 'card', 'transfer', 'check', 'credit')


def normalize_payment_method(value, default='cash'):
    method = (optional_text(value, 'payment_method', max_length=30) or default).lower()
    if method not in PAYMENT_METHODS:
        raise ValidationError.for_field(
            'payment_method', f"payment_method must be one of: {', '.join(PAYMENT_METHODS)}"
        )
    return method


def _record_date(value, field, now):
    if value is None or value == '':
        return now
    return require_datetime(value, field)


def purchase_reference(purchase):
    return f"PUR-{purchase.id}"


class SalesManager:
    """
    Records the money-moving ledgers: sales, purchases, incomes and expenses.

    Sales and linked purchases move stock through :class:`StockLedger` so the
    movement ledger stays complete. Nothing here commits.
    """

    def __init__(self, user_id: int | None = None):
        self.user_id = user_id
        self.ledger = StockLedger(user_id)

    def _audit(self, record):
        record.created_by_id = self.user_id
        record.updated_by_id = self.user_id
        return record

    def check_stock(self, lines) -> None:
        """Raise ValidationError when any line asks for more than is in stock."""
        requested = {}
        for line in lines:
            requested[line['inventory_id']] = requested.get(line['inventory_id'], 0.0) + line['quantity']

        errors = {}
        for inventory_id, quantity in requested.items():
            item = self.ledger.get_item(inventory_id)
            if (item.current_stock or 0.0) < quantity:
                errors[f"item_{inventory_id}"] = (
                    f"Insufficient stock for {item.product_name}: "
                    f"{item.current_stock} available, {quantity} requested"
                )
        if errors:
            raise ValidationError("Insufficient stock", errors=errors)

    def _sale_lines(self, raw_items) -> list[dict]:
        if not isinstance(raw_items, list) or not raw_items:
            raise ValidationError.for_field('items', "A sale needs at least one item")

        lines = []
        for index, raw in enumerate(raw_items):
            if not isinstance(raw, dict):
                raise ValidationError.for_field('items', f"Item {index + 1} is malformed")
            item = self.ledger.get_item(coerce_id(raw.get('inventory_id'), 'inventory_id'))
            quantity = coerce_number(raw.get('quantity'), 'quantity', positive=True)
            unit_price = coerce_number(
                raw.get('unit_price'), 'unit_price', non_negative=True, default=item.sale_price
            )
            lines.append({
                'inventory_id': item.id,
                'product_name': raw.get('product_name') or item.product_name,
                'quantity': quantity,
                'unit_price': money(unit_price),
                'subtotal': line_subtotal(quantity, unit_price),
            })
        return lines

    def record_sale(self, data: dict, now: datetime | None = None, *, quote_id: int | None = None) -> Sale:
        """
        Record a sale and take its lines out of stock.

        Raises:
            ValidationError: malformed data or insufficient stock
            NotFoundError: a line references an unknown inventory item
        """
        now = now or datetime.utcnow()
        customer_name = require_text(data.get('customer_name'), 'customer_name', max_length=200)
        lines = self._sale_lines(data.get('items'))
        self.check_stock(lines)

        totals = compute_totals(
            [line['subtotal'] for line in lines],
            data.get('tax_rate'),
            data.get('discount_amount'),
        )
        sale = self._audit(Sale(
            sale_number=next_document_number(Sale.sale_number, SALE_PREFIX, now),
            customer_name=customer_name,
            sale_date=_record_date(data.get('sale_date'), 'sale_date', now),
            payment_method=normalize_payment_method(data.get('payment_method')),
            notes=optional_text(data.get('notes'), 'notes'),
            quote_id=quote_id,
        ))
        totals.apply_to(sale)
        for line in lines:
            sale.items.append(self._audit(SaleItem(**line)))

        db.session.add(sale)
        db.session.flush()

        for line in lines:
            self.ledger.decrease(line['inventory_id'], line['quantity'], 'Sale', reference=sale.sale_number)

        logger.info(f"Recorded sale {sale.sale_number} for {customer_name}: total {sale.total}")
        return sale

    def _get(self, model, record_id, label):
        record_id = coerce_id(record_id, f"{label.lower()}_id")
        record = db.session.get(model, record_id)
        if record is None:
            raise NotFoundError(label, record_id)
        return record

    def _touch(self, record):
        record.updated_by_id = self.user_id
        db.session.flush()
        return record

    def _purchase_values(self, data: dict, *, partial: bool) -> dict:
        values = {}
        if not partial or 'date' in data:
            values['date'] = _record_date(data.get('date'), 'date', datetime.utcnow())
        if not partial or 'supplier' in data:
            values['supplier'] = require_text(data.get('supplier'), 'supplier', max_length=200)
        if not partial or 'quantity' in data:
            values['quantity'] = coerce_number(data.get('quantity'), 'quantity', positive=True)
        if not partial or 'unit_price' in data:
            values['unit_price'] = money(coerce_number(data.get('unit_price'), 'unit_price', non_negative=True))
        if not partial or 'category' in data:
            values['category'] = optional_text(data.get('category'), 'category', max_length=100)
        if not partial or 'notes' in data:
            values['notes'] = optional_text(data.get('notes'), 'notes')
        return values

    def _linked_item(self, inventory_id):
        if inventory_id in (None, ''):
            return None
        return self.ledger.get_item(inventory_id)

    def record_purchase(self, data: dict, now: datetime | None = None) -> Purchase:
        now = now or datetime.utcnow()
        values = self._purchase_values(dict(data, date=data.get('date') or now), partial=False)
        item = self._linked_item(data.get('inventory_id'))
        product = data.get('product') or (item.product_name if item else None)

        purchase = self._audit(Purchase(
            product=require_text(product, 'product', max_length=200),
            inventory_id=item.id if item else None,
            total_amount=line_subtotal(values['quantity'], values['unit_price']),
            **values,
        ))
        db.session.add(purchase)
        db.session.flush()

        if item is not None:
            self.ledger.increase(item.id, purchase.quantity, 'Purchase', reference=purchase_reference(purchase))

        logger.info(f"Recorded purchase {purchase.id} from {purchase.supplier}: {purchase.total_amount}")
        return purchase

    def update_purchase(self, purchase_id, data: dict) -> Purchase:
        """
        Edit a purchase. When the linked item or the quantity changes the
        stock already received is corrected through the ledger, so the
        movement history shows both the original receipt and the correction.
        """
        purchase = self._get(Purchase, purchase_id, 'Purchase')
        old_item_id = purchase.inventory_id
        old_quantity = purchase.quantity

        for key, value in self._purchase_values(data, partial=True).items():
            setattr(purchase, key, value)
        if 'inventory_id' in data:
            item = self._linked_item(data.get('inventory_id'))
            purchase.inventory_id = item.id if item else None
        if 'product' in data:
            purchase.product = require_text(data.get('product'), 'product', max_length=200)
        purchase.total_amount = line_subtotal(purchase.quantity, purchase.unit_price)
        self._touch(purchase)

        reference = purchase_reference(purchase)
        if old_item_id == purchase.inventory_id:
            delta = round(purchase.quantity - old_quantity, STOCK_PRECISION)
            if old_item_id is not None and delta != 0:
                self.ledger.adjust_stock(old_item_id, delta, 'Purchase corrected', reference)
        else:
            if old_item_id is not None:
                self.ledger.decrease(old_item_id, old_quantity, 'Purchase corrected', reference)
            if purchase.inventory_id is not None:
                self.ledger.increase(purchase.inventory_id, purchase.quantity, 'Purchase', reference)

        logger.info(f"Updated purchase {purchase.id}: {purchase.total_amount}")
        return purchase

    def delete_purchase(self, purchase_id) -> None:
        """Delete a purchase, taking the stock it brought in back out."""
        purchase = self._get(Purchase, purchase_id, 'Purchase')
        if purchase.inventory_id is not None:
            self.ledger.decrease(
                purchase.inventory_id, purchase.quantity, 'Purchase deleted', purchase_reference(purchase)
            )
        db.session.delete(purchase)
        db.session.flush()
        logger.info(f"Deleted purchase {purchase_id}")

    def _income_values(self, data: dict, *, partial: bool) -> dict:
        values = {}
        if not partial or 'date' in data:
            values['date'] = _record_date(data.get('date'), 'date', datetime.utcnow())
        if not partial or 'client' in data:
            values['client'] = require_text(data.get('client'), 'client', max_length=200)
        if not partial or 'product_service' in data:
            values['product_service'] = require_text(data.get('product_service'), 'product_service', max_length=200)
        if not partial or 'quantity' in data:
            values['quantity'] = coerce_number(data.get('quantity'), 'quantity', positive=True, default=1)
        if not partial or 'unit_price' in data:
            values['unit_price'] = money(coerce_number(data.get('unit_price'), 'unit_price', non_negative=True))
        if not partial or 'payment_method' in data:
            values['payment_method'] = normalize_payment_method(data.get('payment_method'))
        if not partial or 'observations' in data:
            values['observations'] = optional_text(data.get('observations'), 'observations')
        return values

    def record_income(self, data: dict, now: datetime | None = None) -> Income:
        now = now or datetime.utcnow()
        values = self._income_values(dict(data, date=data.get('date') or now), partial=False)
        income = self._audit(Income(total=line_subtotal(values['quantity'], values['unit_price']), **values))
        db.session.add(income)
        db.session.flush()
        logger.info(f"Recorded income {income.id} from {income.client}: {income.total}")
        return income

    def update_income(self, income_id, data: dict) -> Income:
        income = self._get(Income, income_id, 'Income')
        for key, value in self._income_values(data, partial=True).items():
            setattr(income, key, value)
        income.total = line_subtotal(income.quantity, income.unit_price)
        logger.info(f"Updated income {income.id}: {income.total}")
        return self._touch(income)

    def delete_income(self, income_id) -> None:
        db.session.delete(self._get(Income, income_id, 'Income'))
        db.session.flush()
        logger.info(f"Deleted income {income_id}")

    def _expense_values(self, data: dict, *, partial: bool) -> dict:
        values = {}
        if not partial or 'date' in data:
            values['date'] = _record_date(data.get('date'), 'date', datetime.utcnow())
        if not partial or 'category' in data:
            values['category'] = require_text(data.get('category'), 'category', max_length=100)
        if not partial or 'description' in data:
            values['description'] = require_text(data.get('description'), 'description', max_length=255)
        if not partial or 'amount' in data:
            values['amount'] = money(coerce_number(data.get('amount'), 'amount', positive=True))
        if not partial or 'payment_method' in data:
            values['payment_method'] = normalize_payment_method(data.get('payment_method'))
        if not partial or 'receipt' in data:
            values['receipt'] = optional_text(data.get('receipt'), 'receipt', max_length=100)
        return values

    def record_expense(self, data: dict, now: datetime | None = None) -> Expense:
        now = now or datetime.utcnow()
        values = self._expense_values(dict(data, date=data.get('date') or now), partial=False)
        expense = self._audit(Expense(**values))
        db.session.add(expense)
        db.session.flush()
        logger.info(f"Recorded expense {expense.id} ({expense.category}): {expense.amount}")
        return expense

    def update_expense(self, expense_id, data: dict) -> Expense:
        expense = self._get(Expense, expense_id, 'Expense')
        for key, value in self._expense_values(data, partial=True).items():
            setattr(expense, key, value)
        logger.info(f"Updated expense {expense.id}: {expense.amount}")
        return self._touch(expense)

    def delete_expense(self, expense_id) -> None:
        db.session.delete(self._get(Expense, expense_id, 'Expense'))
        db.session.flush()
        logger.info(f"Deleted expense {expense_id}")
