# Overview: Catalog collaborator: product metadata lookups and creation.

from __future__ import annotations

from typing import Optional

from ..extensions import db
from ..models import Product
from ..persistence import translate_storage_errors
from .inventory_service import InventoryStore
from .normalization import safe_integer


class CatalogError(ValueError):
    pass


def get_product(product_id: str) -> Optional[Product]:
    with translate_storage_errors(f"product lookup {product_id!r}"):
        return db.session.get(Product, str(product_id))


def list_products() -> list[Product]:
    with translate_storage_errors("product listing"):
        return db.session.query(Product).order_by(Product.category.asc(), Product.name.asc()).all()


def product_with_stock(product: Product, inventory: InventoryStore) -> dict:
    return {**product.to_dict(), "stock": inventory.get_stock(product.id)}


def upsert_product(
    *,
    product_id: str,
    name: str,
    price,
    inventory: InventoryStore,
    stock=None,
    category: str = "",
    image: str = "",
) -> Product:
    """Create or update a catalog entry; stock is only written when given."""
    product_id = str(product_id or "").strip()
    if not product_id:
        raise CatalogError("product id required")
    if not str(name or "").strip():
        raise CatalogError("product name required")

    with translate_storage_errors(f"product upsert {product_id!r}"):
        product = db.session.get(Product, product_id)
        if product is None:
            product = Product(id=product_id)
            db.session.add(product)
        product.name = name.strip()
        product.price = safe_integer(price, 0)
        product.category = category or ""
        product.image = image or ""
        db.session.flush()

    if stock is not None:
        inventory.set_stock(product_id, stock, commit=False)

    with translate_storage_errors("product commit"):
        db.session.commit()
    return product
