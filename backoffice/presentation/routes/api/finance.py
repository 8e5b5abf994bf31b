"""
Finance API routes - sales, purchases, incomes and expenses with their corrections
"""
from flask import jsonify, request

from backoffice.auth import require_role
from backoffice.buisness.core.exceptions import NotFoundError
from backoffice.buisness.core.transaction import run_in_transaction
from backoffice.buisness.finance.aggregation import expenses_by_category, purchase_stats
from backoffice.buisness.finance.sales_manager import SalesManager
from backoffice import db
from backoffice.data.finance.expense import Expense
from backoffice.data.finance.income import Income
from backoffice.data.finance.purchase import Purchase
from backoffice.data.finance.sale import Sale
from backoffice.presentation.routes.api.helpers import (
    ADMIN_ONLY,
    ANY_ROLE,
    SALES_ROLES,
    json_body,
    query_datetime,
    user_id,
)
from backoffice.utils.logger import get_logger

logger = get_logger("backoffice.routes.api.finance")


def _dated_query(model, date_column):
    query = model.query
    date_from = query_datetime('date_from')
    date_to = query_datetime('date_to')
    if date_from:
        query = query.filter(date_column >= date_from)
    if date_to:
        query = query.filter(date_column <= date_to)
    return query.order_by(date_column.desc(), model.id.desc())


def register_finance_routes(api_bp):
    """Register sales, purchases, incomes and expenses routes to the API blueprint"""

    @api_bp.route('/sales', methods=['GET'])
    @require_role(*ANY_ROLE)
    def sales_list():
        sales = _dated_query(Sale, Sale.sale_date).all()
        return jsonify([sale.to_dict() for sale in sales])

    @api_bp.route('/sales', methods=['POST'])
    @require_role(*SALES_ROLES)
    def sales_create():
        data = json_body()
        manager = SalesManager(user_id())
        sale = run_in_transaction(lambda: manager.record_sale(data))
        return jsonify(sale.to_dict(include_items=True)), 201

    @api_bp.route('/sales/<int:sale_id>', methods=['GET'])
    @require_role(*ANY_ROLE)
    def sales_detail(sale_id):
        sale = db.session.get(Sale, sale_id)
        if sale is None:
            raise NotFoundError('Sale', sale_id)
        return jsonify(sale.to_dict(include_items=True))

    @api_bp.route('/purchases', methods=['GET'])
    @require_role(*ANY_ROLE)
    def purchases_list():
        purchases = _dated_query(Purchase, Purchase.date)
        supplier = request.args.get('supplier', '').strip()
        if supplier:
            purchases = purchases.filter(Purchase.supplier.ilike(f"%{supplier}%"))
        return jsonify([purchase.to_dict() for purchase in purchases.all()])

    @api_bp.route('/purchases', methods=['POST'])
    @require_role(*ADMIN_ONLY)
    def purchases_create():
        data = json_body()
        manager = SalesManager(user_id())
        purchase = run_in_transaction(lambda: manager.record_purchase(data))
        return jsonify(purchase.to_dict()), 201

    @api_bp.route('/incomes', methods=['GET'])
    @require_role(*ANY_ROLE)
    def incomes_list():
        incomes = _dated_query(Income, Income.date).all()
        return jsonify([income.to_dict() for income in incomes])

    @api_bp.route('/incomes', methods=['POST'])
    @require_role(*SALES_ROLES)
    def incomes_create():
        data = json_body()
        manager = SalesManager(user_id())
        income = run_in_transaction(lambda: manager.record_income(data))
        return jsonify(income.to_dict()), 201

    @api_bp.route('/expenses', methods=['GET'])
    @require_role(*ANY_ROLE)
    def expenses_list():
        expenses = _dated_query(Expense, Expense.date)
        category = request.args.get('category', '').strip()
        if category:
            expenses = expenses.filter_by(category=category)
        return jsonify([expense.to_dict() for expense in expenses.all()])

    @api_bp.route('/expenses', methods=['POST'])
    @require_role(*ADMIN_ONLY)
    def expenses_create():
        data = json_body()
        manager = SalesManager(user_id())
        expense = run_in_transaction(lambda: manager.record_expense(data))
        return jsonify(expense.to_dict()), 201

    @api_bp.route('/expenses/categories', methods=['GET'])
    @require_role(*ANY_ROLE)
    def expenses_categories():
        return jsonify(expenses_by_category(query_datetime('date_from'), query_datetime('date_to')))

    @api_bp.route('/expenses/<int:expense_id>', methods=['PUT'])
    @require_role(*ADMIN_ONLY)
    def expenses_update(expense_id):
        data = json_body()
        manager = SalesManager(user_id())
        expense = run_in_transaction(lambda: manager.update_expense(expense_id, data))
        return jsonify(expense.to_dict())

    @api_bp.route('/expenses/<int:expense_id>', methods=['DELETE'])
    @require_role(*ADMIN_ONLY)
    def expenses_delete(expense_id):
        manager = SalesManager(user_id())
        run_in_transaction(lambda: manager.delete_expense(expense_id))
        return jsonify({'success': True})

    @api_bp.route('/incomes/<int:income_id>', methods=['PUT'])
    @require_role(*SALES_ROLES)
    def incomes_update(income_id):
        data = json_body()
        manager = SalesManager(user_id())
        income = run_in_transaction(lambda: manager.update_income(income_id, data))
        return jsonify(income.to_dict())

    @api_bp.route('/incomes/<int:income_id>', methods=['DELETE'])
    @require_role(*SALES_ROLES)
    def incomes_delete(income_id):
        manager = SalesManager(user_id())
        run_in_transaction(lambda: manager.delete_income(income_id))
        return jsonify({'success': True})

    @api_bp.route('/purchases/stats', methods=['GET'])
    @require_role(*ANY_ROLE)
    def purchases_stats():
        return jsonify(purchase_stats())

    @api_bp.route('/purchases/<int:purchase_id>', methods=['PUT'])
    @require_role(*ADMIN_ONLY)
    def purchases_update(purchase_id):
        data = json_body()
        manager = SalesManager(user_id())
        purchase = run_in_transaction(lambda: manager.update_purchase(purchase_id, data))
        return jsonify(purchase.to_dict())

    @api_bp.route('/purchases/<int:purchase_id>', methods=['DELETE'])
    @require_role(*ADMIN_ONLY)
    def purchases_delete(purchase_id):
        manager = SalesManager(user_id())
        run_in_transaction(lambda: manager.delete_purchase(purchase_id))
        return jsonify({'success': True})
