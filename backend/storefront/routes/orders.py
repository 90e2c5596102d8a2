# backend/storefront/routes/orders.py
"""
Customer order routes: checkout, order history, cancellation.

Checkout failures (unauthenticated, empty cart, insufficient stock) are
expected outcomes and come back as CheckoutFailure values, not exceptions.
"""

from flask import Blueprint, current_app, g, jsonify

from ..auth import resolve_auth_state
from ..decorators import require_customer
from ..persistence import StorageError
from ..services import checkout_service, order_service, settings_service
from ..services.inventory_service import default_inventory
from ..services.order_repository import default_repository
from .cart import load_cart, save_cart


checkout_bp = Blueprint("checkout", __name__, url_prefix="/api/checkout")
orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")

FAILURE_STATUS_CODES = {
    checkout_service.FAILURE_UNAUTHENTICATED: 401,
    checkout_service.FAILURE_EMPTY_CART: 400,
    checkout_service.FAILURE_INSUFFICIENT_STOCK: 409,
}


def order_payload(order) -> dict:
    return {
        **order.to_dict(),
        "status_label": order.status_label,
        "shipping_status_label": order.shipping_status_label,
        "can_be_cancelled": order_service.can_be_cancelled(order),
    }


@checkout_bp.post("")
def checkout_route():
    auth = resolve_auth_state()
    cart = load_cart()
    try:
        result = checkout_service.place_order(
            default_repository(),
            default_inventory(),
            cart,
            auth,
            auto_confirm=settings_service.get_auto_confirm(),
        )
    except StorageError:
        current_app.logger.exception("Checkout failed on storage")
        return jsonify({"error": "Storage unavailable, please retry"}), 503
    except Exception:
        current_app.logger.exception("Failed to place order")
        return jsonify({"error": "Internal server error"}), 500

    if not result.ok:
        return jsonify(result.error.to_dict()), FAILURE_STATUS_CODES.get(result.error.kind, 400)

    save_cart(cart)
    return jsonify({"order": order_payload(result.order)}), 201


@orders_bp.get("")
@require_customer
def my_orders_route():
    try:
        orders = order_service.get_orders_for_customer(default_repository(), g.auth.email)
    except StorageError:
        current_app.logger.exception("Failed to load customer orders")
        return jsonify({"error": "Storage unavailable"}), 503
    return jsonify({"orders": [order_payload(order) for order in orders]}), 200


@orders_bp.get("/<order_id>")
@require_customer
def get_order_route(order_id: str):
    try:
        order = order_service.get_order(default_repository(), order_id)
    except StorageError:
        current_app.logger.exception("Failed to load order")
        return jsonify({"error": "Storage unavailable"}), 503

    # Another customer's order is reported as missing
    if order is None or (order.customer_email != g.auth.email and not g.auth.is_admin):
        return jsonify({"error": "Order not found"}), 404
    return jsonify({"order": order_payload(order)}), 200


@orders_bp.post("/<order_id>/cancel")
@require_customer
def cancel_order_route(order_id: str):
    repo = default_repository()
    try:
        existing = order_service.get_order(repo, order_id)
        if existing is None or existing.customer_email != g.auth.email:
            return jsonify({"error": "Order not found"}), 404

        cancelled = checkout_service.cancel_and_restore(repo, default_inventory(), order_id, g.auth.email)
    except StorageError:
        current_app.logger.exception("Cancel failed on storage")
        return jsonify({"error": "Storage unavailable, please retry"}), 503
    except Exception:
        current_app.logger.exception("Failed to cancel order")
        return jsonify({"error": "Internal server error"}), 500

    if cancelled is None:
        return jsonify({"error": "Order can no longer be cancelled", "kind": "precondition_failed"}), 409
    return jsonify({"order": order_payload(cancelled)}), 200
