"""
Report API routes - profitability, receivables aging and dashboard numbers
"""
from datetime import datetime

from flask import jsonify, request

from backoffice.auth import require_role
from backoffice.buisness.finance.aggregation import (
    accounts_receivable_aging,
    monthly_profitability,
    profitability_series,
)
from backoffice.presentation.routes.api.helpers import ANY_ROLE
from backoffice.services.finance.dashboard_service import DashboardService


def register_report_routes(api_bp):
    """Register reporting routes to the API blueprint"""

    @api_bp.route('/reports/monthly-profitability', methods=['GET'])
    @require_role(*ANY_ROLE)
    def report_monthly_profitability():
        now = datetime.utcnow()
        year = request.args.get('year', now.year, type=int)
        month = request.args.get('month', now.month, type=int)
        return jsonify(monthly_profitability(year, month).to_dict())

    @api_bp.route('/reports/profitability-series', methods=['GET'])
    @require_role(*ANY_ROLE)
    def report_profitability_series():
        months = request.args.get('months', 6, type=int)
        return jsonify([entry.to_dict() for entry in profitability_series(months)])

    @api_bp.route('/accounts-receivable/aging', methods=['GET'])
    @require_role(*ANY_ROLE)
    def report_receivables_aging():
        return jsonify(accounts_receivable_aging().to_dict())

    @api_bp.route('/dashboard/stats', methods=['GET'])
    @require_role(*ANY_ROLE)
    def report_dashboard_stats():
        return jsonify(DashboardService.get_stats())
