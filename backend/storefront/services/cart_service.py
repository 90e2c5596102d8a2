# Overview: Session cart operations; every mutation path shares one stock-clamping rule.

"""
Cart

A cart is transient: it lives in the Flask session cookie (see
routes/cart.py) and is discarded on successful checkout.

CLAMPING RULE (single source of truth, clamp_to_stock):
- quantity = min(max(0, floor(requested)), stock snapshot)
- add_to_cart: requested is at least 1; merging sums first, then clamps;
  the stock snapshot is refreshed from the product being added
- update_quantity: clamps against the line's current snapshot (refreshed
  when the caller passes live stock); 0 removes the line
- a product with no stock cannot be added (returns None)
- Cart.from_dict: repeated product ids merge (sum, then clamp), so a line
  is never checked against stock in pieces
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Optional

from .normalization import safe_integer, safe_number


@dataclass(frozen=True)
class CartLine:
    product_id: str
    name: str
    price: int
    stock: int
    quantity: int
    image: str = ""
    category: str = ""

    @property
    def line_total(self) -> int:
        return self.price * self.quantity

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "name": self.name,
            "price": self.price,
            "stock": self.stock,
            "quantity": self.quantity,
            "image": self.image,
            "category": self.category,
            "line_total": self.line_total,
        }

    def to_order_item(self) -> dict:
        return {
            "product_id": self.product_id,
            "product_name": self.name,
            "unit_price": self.price,
            "quantity": self.quantity,
            "image": self.image,
            "category": self.category,
        }


@dataclass
class Cart:
    lines: list[CartLine] = field(default_factory=list)

    def find(self, product_id: str) -> Optional[CartLine]:
        return next((line for line in self.lines if line.product_id == str(product_id)), None)

    @property
    def is_empty(self) -> bool:
        return not self.lines

    def summary(self) -> dict:
        return {
            "item_count": sum(line.quantity for line in self.lines),
            "subtotal": sum(line.line_total for line in self.lines),
        }

    def to_dict(self) -> dict:
        return {"lines": [line.to_dict() for line in self.lines], **self.summary()}

    @classmethod
    def from_dict(cls, data: Any) -> "Cart":
        """
        Rebuild from session data; malformed lines are dropped.

        Repeated product ids merge into one line the way add_to_cart merges:
        quantities are summed, then clamped to the smallest stock snapshot.
        """
        merged: dict[str, CartLine] = {}
        raw_lines = data.get("lines") if isinstance(data, dict) else None
        for raw in raw_lines if isinstance(raw_lines, list) else []:
            if not isinstance(raw, dict) or not raw.get("product_id"):
                continue
            product_id = str(raw["product_id"])
            stock = safe_integer(raw.get("stock"), 0)
            quantity = safe_integer(raw.get("quantity"), 0)

            existing = merged.get(product_id)
            if existing is not None:
                stock = min(stock, existing.stock)
                merged[product_id] = replace(existing, stock=stock, quantity=existing.quantity + quantity)
                continue
            merged[product_id] = CartLine(
                product_id=product_id,
                name=str(raw.get("name") or ""),
                price=safe_integer(raw.get("price"), 0),
                stock=stock,
                quantity=quantity,
                image=str(raw.get("image") or ""),
                category=str(raw.get("category") or ""),
            )

        lines = []
        for line in merged.values():
            quantity = clamp_to_stock(line.quantity, line.stock)
            if quantity > 0:
                lines.append(replace(line, quantity=quantity))
        return cls(lines=lines)


def clamp_to_stock(requested, stock) -> int:
    return min(safe_integer(requested, 0), safe_integer(stock, 0))


def _field(product: Any, name: str, default=None):
    if isinstance(product, dict):
        return product.get(name, default)
    return getattr(product, name, default)


def add_to_cart(cart: Cart, product: Any, stock, qty=1) -> Optional[CartLine]:
    """
    Add qty of product, clamped to [1, stock].

    product is a catalog entry (Product row or dict with id/name/price);
    stock is the current available quantity. Returns the resulting line, or
    None when the product is unavailable.
    """
    stock_limit = safe_integer(stock, 0)
    if stock_limit <= 0:
        return None

    requested = max(1, safe_integer(qty, 1))
    product_id = str(_field(product, "id", ""))
    if not product_id:
        return None

    existing = cart.find(product_id)
    line = CartLine(
        product_id=product_id,
        name=str(_field(product, "name", "") or ""),
        price=safe_integer(_field(product, "price", 0), 0),
        stock=stock_limit,
        quantity=clamp_to_stock(requested + (existing.quantity if existing else 0), stock_limit),
        image=str(_field(product, "image", "") or ""),
        category=str(_field(product, "category", "") or ""),
    )

    if existing:
        cart.lines = [line if item.product_id == product_id else item for item in cart.lines]
    else:
        cart.lines.append(line)
    return line


def update_quantity(cart: Cart, product_id: str, quantity, stock=None) -> Optional[CartLine]:
    """
    Set a line's quantity; 0 removes it.

    Non-numeric quantity keeps the current value. Returns the updated line,
    or None when the line is gone (removed or never present).
    """
    existing = cart.find(product_id)
    if existing is None:
        return None

    stock_limit = existing.stock if stock is None else safe_integer(stock, 0)
    requested = safe_number(quantity, existing.quantity)
    line = replace(existing, stock=stock_limit, quantity=clamp_to_stock(requested, stock_limit))

    if line.quantity <= 0:
        remove_item(cart, product_id)
        return None

    cart.lines = [line if item.product_id == existing.product_id else item for item in cart.lines]
    return line


def remove_item(cart: Cart, product_id: str) -> bool:
    before = len(cart.lines)
    cart.lines = [line for line in cart.lines if line.product_id != str(product_id)]
    return len(cart.lines) != before


def clear(cart: Cart) -> None:
    cart.lines = []
