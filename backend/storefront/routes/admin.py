# backend/storefront/routes/admin.py
"""
Operator routes: order lifecycle, stock levels, policy and metrics.

Every route is behind require_admin; the admin email becomes the actor
label written into order timelines.
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_admin
from ..persistence import StorageError
from ..services import catalog_service, checkout_service, order_service, reporting_service, settings_service
from ..services.inventory_service import default_inventory, set_stock_as
from ..services.order_repository import default_repository
from ..validation import PayloadPolicy, ValidationError, coerce_bool, coerce_int, coerce_str, validate_payload
from .orders import order_payload


admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")

SHIPPING_POLICY = PayloadPolicy(
    fields={"shipping_status": coerce_str},
    required={"shipping_status"},
)

AUTO_CONFIRM_POLICY = PayloadPolicy(
    fields={"enabled": coerce_bool},
    required={"enabled"},
)

SET_STOCK_POLICY = PayloadPolicy(
    fields={"quantity": coerce_int},
    required={"quantity"},
)

ADJUST_STOCK_POLICY = PayloadPolicy(
    fields={"delta": lambda key, value: coerce_int(key, value, allow_negative=True)},
    required={"delta"},
)


def _storage_unavailable(message: str):
    current_app.logger.exception(message)
    return jsonify({"error": "Storage unavailable, please retry"}), 503


def _precondition_failed(repo, order_id: str, message: str):
    if order_service.get_order(repo, order_id) is None:
        return jsonify({"error": "Order not found"}), 404
    return jsonify({"error": message, "kind": "precondition_failed"}), 409


@admin_bp.get("/orders")
@require_admin
def list_orders_route():
    try:
        orders = order_service.list_orders(default_repository())
    except StorageError:
        return _storage_unavailable("Failed to list orders")

    status = (request.args.get("status") or "").strip().lower()
    if status:
        orders = [order for order in orders if order.status == status]
    return jsonify({"orders": [order_payload(order) for order in orders]}), 200


@admin_bp.post("/orders/<order_id>/confirm")
@require_admin
def confirm_order_route(order_id: str):
    repo = default_repository()
    try:
        updated = order_service.confirm_order(repo, order_id, g.auth.email)
        if updated is None:
            return _precondition_failed(repo, order_id, "Cancelled orders cannot be confirmed")
    except StorageError:
        return _storage_unavailable("Confirm failed on storage")
    except Exception:
        current_app.logger.exception("Failed to confirm order")
        return jsonify({"error": "Internal server error"}), 500
    return jsonify({"order": order_payload(updated)}), 200


@admin_bp.post("/orders/<order_id>/shipping")
@require_admin
def update_shipping_route(order_id: str):
    try:
        data = validate_payload(request.get_json(silent=True), SHIPPING_POLICY)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    repo = default_repository()
    try:
        updated = checkout_service.update_shipping_and_restore(
            repo, default_inventory(), order_id, data["shipping_status"], g.auth.email,
        )
        if updated is None:
            return _precondition_failed(
                repo, order_id, "Order is cancelled or already has that shipping status"
            )
    except StorageError:
        return _storage_unavailable("Shipping update failed on storage")
    except Exception:
        current_app.logger.exception("Failed to update shipping status")
        return jsonify({"error": "Internal server error"}), 500
    return jsonify({"order": order_payload(updated)}), 200


@admin_bp.get("/settings/auto-confirm")
@require_admin
def get_auto_confirm_route():
    try:
        enabled = settings_service.get_auto_confirm()
    except StorageError:
        return _storage_unavailable("Failed to read auto-confirm policy")
    return jsonify({"enabled": enabled}), 200


@admin_bp.put("/settings/auto-confirm")
@require_admin
def set_auto_confirm_route():
    try:
        data = validate_payload(request.get_json(silent=True), AUTO_CONFIRM_POLICY)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        enabled = settings_service.set_auto_confirm(data["enabled"], g.auth.email)
    except StorageError:
        return _storage_unavailable("Failed to store auto-confirm policy")
    return jsonify({"enabled": enabled}), 200


@admin_bp.put("/inventory/<product_id>")
@require_admin
def set_stock_route(product_id: str):
    try:
        data = validate_payload(request.get_json(silent=True), SET_STOCK_POLICY)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        if catalog_service.get_product(product_id) is None:
            return jsonify({"error": "Product not found"}), 404
        quantity = set_stock_as(default_inventory(), product_id, data["quantity"], g.auth.email)
    except StorageError:
        return _storage_unavailable("Stock update failed on storage")
    return jsonify({"product_id": product_id, "stock": quantity}), 200


@admin_bp.post("/inventory/<product_id>/adjust")
@require_admin
def adjust_stock_route(product_id: str):
    try:
        data = validate_payload(request.get_json(silent=True), ADJUST_STOCK_POLICY)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        if catalog_service.get_product(product_id) is None:
            return jsonify({"error": "Product not found"}), 404
        quantity = default_inventory().adjust_stock(product_id, data["delta"])
    except StorageError:
        return _storage_unavailable("Stock adjustment failed on storage")

    current_app.logger.info("Stock for %s adjusted by %s (%s)", product_id, data["delta"], g.auth.email)
    return jsonify({"product_id": product_id, "stock": quantity}), 200


@admin_bp.get("/metrics")
@require_admin
def metrics_route():
    group_by = request.args.get("group_by", "day")
    try:
        orders = order_service.list_orders(default_repository())
        revenue = reporting_service.revenue_metrics(orders)
        by_period = reporting_service.revenue_by_period(orders, group_by=group_by)
        inventory = reporting_service.inventory_summary(
            catalog_service.list_products(),
            default_inventory(),
            low_stock_threshold=current_app.config.get("LOW_STOCK_THRESHOLD", 5),
        )
    except reporting_service.ReportError as e:
        return jsonify({"error": str(e)}), 400
    except StorageError:
        return _storage_unavailable("Failed to compute metrics")

    return jsonify({"revenue": revenue, "revenue_by_period": by_period, "inventory": inventory}), 200
