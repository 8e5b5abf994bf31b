"""
Payroll API routes - employees and salary payments (admin only)
"""
from flask import jsonify, request

from backoffice.auth import require_role
from backoffice.buisness.core.transaction import run_in_transaction
from backoffice.buisness.payroll.payroll_manager import PayrollManager
from backoffice.presentation.routes.api.helpers import ADMIN_ONLY, json_body, user_id


def register_payroll_routes(api_bp):
    """Register employee and payroll routes to the API blueprint"""

    @api_bp.route('/employees', methods=['GET'])
    @require_role(*ADMIN_ONLY)
    def employees_list():
        include_inactive = request.args.get('include_inactive', '').lower() in ('1', 'true', 'yes')
        employees = PayrollManager().list_employees(include_inactive=include_inactive)
        return jsonify([employee.to_dict() for employee in employees])

    @api_bp.route('/employees', methods=['POST'])
    @require_role(*ADMIN_ONLY)
    def employees_create():
        data = json_body()
        manager = PayrollManager(user_id())
        employee = run_in_transaction(lambda: manager.create_employee(data))
        return jsonify(employee.to_dict()), 201

    @api_bp.route('/employees/<int:employee_id>', methods=['GET'])
    @require_role(*ADMIN_ONLY)
    def employees_detail(employee_id):
        return jsonify(PayrollManager().get_employee(employee_id).to_dict())

    @api_bp.route('/employees/<int:employee_id>', methods=['PUT'])
    @require_role(*ADMIN_ONLY)
    def employees_update(employee_id):
        data = json_body()
        manager = PayrollManager(user_id())
        employee = run_in_transaction(lambda: manager.update_employee(employee_id, data))
        return jsonify(employee.to_dict())

    @api_bp.route('/employees/<int:employee_id>', methods=['DELETE'])
    @require_role(*ADMIN_ONLY)
    def employees_delete(employee_id):
        manager = PayrollManager(user_id())
        run_in_transaction(lambda: manager.deactivate_employee(employee_id))
        return jsonify({'success': True})

    @api_bp.route('/employees/<int:employee_id>/payroll', methods=['GET'])
    @require_role(*ADMIN_ONLY)
    def employees_payroll(employee_id):
        records = PayrollManager().payroll_records(employee_id)
        return jsonify([record.to_dict() for record in records])

    @api_bp.route('/payroll', methods=['GET'])
    @require_role(*ADMIN_ONLY)
    def payroll_list():
        employee_id = request.args.get('employee_id', '').strip() or None
        records = PayrollManager().payroll_records(employee_id)
        return jsonify([record.to_dict() for record in records])

    @api_bp.route('/payroll', methods=['POST'])
    @require_role(*ADMIN_ONLY)
    def payroll_create():
        data = json_body()
        manager = PayrollManager(user_id())
        record = run_in_transaction(lambda: manager.record_payment(data))
        return jsonify(record.to_dict()), 201
