# backend/storefront/routes/cart.py
"""
Cart routes.

The cart is held in the signed Flask session cookie and never persisted
server-side. Quantities are clamped to stock by cart_service on every
mutation; the response always carries the full cart.
"""

from flask import Blueprint, current_app, jsonify, request, session

from ..decorators import require_customer
from ..persistence import StorageError
from ..services import cart_service, catalog_service
from ..services.cart_service import Cart
from ..services.inventory_service import default_inventory
from ..validation import PayloadPolicy, ValidationError, coerce_int, coerce_str, validate_payload


cart_bp = Blueprint("cart", __name__, url_prefix="/api/cart")

CART_SESSION_KEY = "cart"

ADD_ITEM_POLICY = PayloadPolicy(
    fields={"product_id": coerce_str, "quantity": coerce_int},
    required={"product_id"},
)

UPDATE_ITEM_POLICY = PayloadPolicy(
    fields={"quantity": coerce_int},
    required={"quantity"},
)


def load_cart() -> Cart:
    return Cart.from_dict(session.get(CART_SESSION_KEY))


def save_cart(cart: Cart) -> None:
    session[CART_SESSION_KEY] = {"lines": [line.to_dict() for line in cart.lines]}


@cart_bp.get("")
@require_customer
def get_cart_route():
    return jsonify({"cart": load_cart().to_dict()}), 200


@cart_bp.post("/items")
@require_customer
def add_item_route():
    try:
        data = validate_payload(request.get_json(silent=True), ADD_ITEM_POLICY)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        product = catalog_service.get_product(data["product_id"])
        if not product:
            return jsonify({"error": "Product not found"}), 404

        cart = load_cart()
        stock = default_inventory().get_stock(product.id)
        line = cart_service.add_to_cart(cart, product, stock, data.get("quantity", 1))
        if line is None:
            return jsonify({"error": "Product is out of stock", "kind": "unavailable"}), 409

        save_cart(cart)
        return jsonify({"line": line.to_dict(), "cart": cart.to_dict()}), 201
    except StorageError:
        current_app.logger.exception("Failed to add cart item")
        return jsonify({"error": "Storage unavailable"}), 503
    except Exception:
        current_app.logger.exception("Failed to add cart item")
        return jsonify({"error": "Internal server error"}), 500


@cart_bp.patch("/items/<product_id>")
@require_customer
def update_item_route(product_id: str):
    try:
        data = validate_payload(request.get_json(silent=True), UPDATE_ITEM_POLICY)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    cart = load_cart()
    if cart.find(product_id) is None:
        return jsonify({"error": "Item not in cart"}), 404

    try:
        stock = default_inventory().get_stock(product_id)
    except StorageError:
        current_app.logger.exception("Failed to read stock for cart update")
        return jsonify({"error": "Storage unavailable"}), 503

    line = cart_service.update_quantity(cart, product_id, data["quantity"], stock)
    save_cart(cart)
    return jsonify({"line": line.to_dict() if line else None, "cart": cart.to_dict()}), 200


@cart_bp.delete("/items/<product_id>")
@require_customer
def remove_item_route(product_id: str):
    cart = load_cart()
    if not cart_service.remove_item(cart, product_id):
        return jsonify({"error": "Item not in cart"}), 404
    save_cart(cart)
    return jsonify({"cart": cart.to_dict()}), 200


@cart_bp.delete("")
@require_customer
def clear_cart_route():
    cart = load_cart()
    cart_service.clear(cart)
    save_cart(cart)
    return jsonify({"cart": cart.to_dict()}), 200
