"""
Inventory API routes - catalogue, stock state and the movement ledger
"""
from flask import jsonify, request
from flask_login import current_user

from backoffice.auth import require_role
from backoffice.buisness.core.transaction import run_in_transaction
from backoffice.buisness.inventory.inventory_manager import InventoryManager
from backoffice.buisness.inventory.stock_ledger import StockLedger
from backoffice.presentation.routes.api.helpers import (
    ADMIN_ONLY,
    ANY_ROLE,
    json_body,
    pagination_payload,
    query_datetime,
    user_id,
)
from backoffice.services.inventory.stock_movement_service import StockMovementService
from backoffice.utils.logger import get_logger

logger = get_logger("backoffice.routes.api.inventory")


def register_inventory_routes(api_bp):
    """Register all inventory routes to the API blueprint"""

    @api_bp.route('/inventory', methods=['GET'])
    @require_role(*ANY_ROLE)
    def inventory_list():
        items = StockMovementService.list_items(search=request.args.get('search', '').strip() or None)
        return jsonify([StockMovementService.item_to_dict(item) for item in items])

    @api_bp.route('/inventory', methods=['POST'])
    @require_role(*ADMIN_ONLY)
    def inventory_create():
        data = json_body()
        manager = InventoryManager(user_id())
        item = run_in_transaction(lambda: manager.create_item(data))
        logger.info(f"Inventory item {item.id} created by {current_user.username}")
        return jsonify(StockMovementService.item_to_dict(item)), 201

    @api_bp.route('/inventory/low-stock', methods=['GET'])
    @require_role(*ANY_ROLE)
    def inventory_low_stock():
        items = StockLedger().low_stock_items()
        return jsonify([StockMovementService.item_to_dict(item) for item in items])

    @api_bp.route('/inventory/<int:item_id>', methods=['GET'])
    @require_role(*ANY_ROLE)
    def inventory_detail(item_id):
        item = StockLedger().get_item(item_id)
        return jsonify(StockMovementService.item_to_dict(item))

    @api_bp.route('/inventory/<int:item_id>', methods=['PUT'])
    @require_role(*ADMIN_ONLY)
    def inventory_update(item_id):
        data = json_body()
        manager = InventoryManager(user_id())
        item = run_in_transaction(lambda: manager.update_item(item_id, data))
        return jsonify(StockMovementService.item_to_dict(item))

    @api_bp.route('/inventory/<int:item_id>/stock', methods=['GET'])
    @require_role(*ANY_ROLE)
    def inventory_stock(item_id):
        item = StockLedger().get_item(item_id)
        return jsonify(StockMovementService.stock_state(item))

    @api_bp.route('/inventory/<int:item_id>/adjust-stock', methods=['POST'])
    @require_role(*ADMIN_ONLY)
    def inventory_adjust_stock(item_id):
        """
        Adjust stock with either ``{adjustment, reason, reference?}`` (signed
        delta) or ``{mode: increase|decrease|set, quantity, reason, reference?}``.
        """
        data = json_body()
        ledger = StockLedger(user_id())

        if 'mode' in data:
            def work():
                return ledger.apply_mode(
                    item_id, data.get('mode'), data.get('quantity'), data.get('reason'), data.get('reference')
                )
        else:
            def work():
                return ledger.adjust_stock(
                    item_id, data.get('adjustment'), data.get('reason'), data.get('reference')
                )

        movement = run_in_transaction(work)
        logger.info(
            f"Stock adjusted on item {item_id} by {current_user.username}: "
            f"{movement.previous_stock} -> {movement.new_stock}"
        )
        return jsonify({
            'success': True,
            'new_stock': movement.new_stock,
            'movement_id': movement.id,
            'clamped': movement.clamped,
            'movement': movement.to_dict(),
        })

    @api_bp.route('/inventory/<int:item_id>/movements', methods=['GET'])
    @require_role(*ANY_ROLE)
    def inventory_movements(item_id):
        StockLedger().get_item(item_id)
        limit = request.args.get('limit', type=int)
        movements = StockMovementService.get_movement_history(item_id, limit=limit)
        return jsonify([movement.to_dict() for movement in movements])

    @api_bp.route('/inventory/<int:item_id>/verify-ledger', methods=['GET'])
    @require_role(*ADMIN_ONLY)
    def inventory_verify_ledger(item_id):
        report = StockLedger().verify_ledger(item_id)
        return jsonify(report.to_dict())

    @api_bp.route('/stock-movements', methods=['GET'])
    @require_role(*ANY_ROLE)
    def stock_movements_list():
        pagination, filter_options = StockMovementService.get_list_data(
            page=request.args.get('page', 1, type=int),
            per_page=min(request.args.get('per_page', 20, type=int), 100),
            inventory_id=request.args.get('inventory_id', type=int),
            movement_type=request.args.get('movement_type', '').strip() or None,
            date_from=query_datetime('date_from'),
            date_to=query_datetime('date_to'),
        )
        payload = pagination_payload(pagination, lambda movement: movement.to_dict())
        payload['filters'] = filter_options
        return jsonify(payload)
