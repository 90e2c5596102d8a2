# backend/storefront/routes/catalog.py
"""Catalog read routes: product metadata joined with live stock."""

from flask import Blueprint, current_app, jsonify

from ..persistence import StorageError
from ..services import catalog_service
from ..services.inventory_service import default_inventory


catalog_bp = Blueprint("catalog", __name__, url_prefix="/api/products")


@catalog_bp.get("")
def list_products_route():
    try:
        inventory = default_inventory()
        products = catalog_service.list_products()
        return jsonify({
            "products": [catalog_service.product_with_stock(p, inventory) for p in products]
        }), 200
    except StorageError:
        current_app.logger.exception("Failed to list products")
        return jsonify({"error": "Storage unavailable"}), 503


@catalog_bp.get("/<product_id>")
def get_product_route(product_id: str):
    try:
        product = catalog_service.get_product(product_id)
        if not product:
            return jsonify({"error": "Product not found"}), 404
        return jsonify({"product": catalog_service.product_with_stock(product, default_inventory())}), 200
    except StorageError:
        current_app.logger.exception("Failed to load product")
        return jsonify({"error": "Storage unavailable"}), 503
