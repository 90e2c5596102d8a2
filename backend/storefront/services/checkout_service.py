# Overview: Cart-to-order reconciliation against live inventory; checkout and cancellation restock.

"""
Checkout Service

place_order:
1. Customer must be authenticated with an email      -> unauthenticated
2. Cart must have at least one line                  -> empty_cart
3. Every line's quantity <= current stock            -> insufficient_stock
4. Create the order, decrement stock per line, clear the cart.

Every path that cancels an order returns its quantities to stock:
cancel_and_restore (customer) and update_shipping_and_restore (operator
setting shipping to cancelled).

Failures return a CheckoutResult carrying a CheckoutFailure; nothing is
written when any precondition fails.

CONSISTENCY WINDOW: the order collection and the stock counts are two
stores. Both writes are staged with commit=False and committed at the end.
With the SQL backends they share one database session, so the commit is a
single transaction and a crash leaves neither write behind. With backends
that do not share a transaction (the in-memory stores), a failure between
the two commits can leave stock overstated relative to outstanding orders.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from ..auth import AuthState
from ..models.orders import Order
from .cart_service import Cart, clear
from .concurrency import run_with_retry
from .inventory_service import InventoryStore
from .order_repository import OrderRepository
from . import order_service


FAILURE_UNAUTHENTICATED = "unauthenticated"
FAILURE_EMPTY_CART = "empty_cart"
FAILURE_INSUFFICIENT_STOCK = "insufficient_stock"


@dataclass(frozen=True)
class CheckoutFailure:
    kind: str
    message: str
    details: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {"error": self.message, "kind": self.kind, "details": self.details}


@dataclass(frozen=True)
class CheckoutResult:
    order: Optional[Order] = None
    error: Optional[CheckoutFailure] = None

    @property
    def ok(self) -> bool:
        return self.order is not None and self.error is None


def find_stock_issues(cart: Cart, inventory: InventoryStore) -> list[dict]:
    issues = []
    for line in cart.lines:
        available = inventory.get_stock(line.product_id)
        if line.quantity > available:
            issues.append({
                "product_id": line.product_id,
                "product_name": line.name,
                "requested_quantity": line.quantity,
                "available": available,
            })
    return issues


def _commit_both(repo: OrderRepository, inventory: InventoryStore) -> None:
    repo.commit()
    inventory.commit()


def _rollback_both(repo: OrderRepository, inventory: InventoryStore) -> None:
    repo.rollback()
    inventory.rollback()


def place_order(
    repo: OrderRepository,
    inventory: InventoryStore,
    cart: Cart,
    auth: AuthState,
    *,
    auto_confirm: bool,
) -> CheckoutResult:
    if not auth.is_authenticated or not auth.email:
        return CheckoutResult(error=CheckoutFailure(
            FAILURE_UNAUTHENTICATED,
            "Please sign in first before placing an order.",
        ))

    if cart.is_empty:
        return CheckoutResult(error=CheckoutFailure(FAILURE_EMPTY_CART, "Cart is empty"))

    def _op() -> CheckoutResult:
        issues = find_stock_issues(cart, inventory)
        if issues:
            names = ", ".join(issue["product_name"] or issue["product_id"] for issue in issues)
            return CheckoutResult(error=CheckoutFailure(
                FAILURE_INSUFFICIENT_STOCK,
                f"Insufficient stock for: {names}. Please adjust cart quantity and try again.",
                details={"items": issues},
            ))

        order = order_service.create_order(
            repo,
            customer_email=auth.email,
            customer_id=auth.user_id,
            items=[line.to_order_item() for line in cart.lines],
            subtotal=cart.summary()["subtotal"],
            auto_confirm=auto_confirm,
            commit=False,
        )
        if order is None:
            return CheckoutResult(error=CheckoutFailure(FAILURE_EMPTY_CART, "Cart has no orderable items"))
        for line in cart.lines:
            inventory.adjust_stock(line.product_id, -line.quantity, commit=False)

        _commit_both(repo, inventory)
        return CheckoutResult(order=order)

    result = run_with_retry(
        _op,
        rollback=lambda: _rollback_both(repo, inventory),
        attempts=order_service.retry_attempts(),
    )
    if result.ok:
        clear(cart)
    return result


def restore_on_cancel(inventory: InventoryStore, order: Order, *, commit: bool = True) -> None:
    for item in order.items:
        inventory.adjust_stock(item.product_id, item.quantity, commit=False)
    if commit:
        inventory.commit()


def cancel_and_restore(
    repo: OrderRepository,
    inventory: InventoryStore,
    order_id: str,
    customer_email: Optional[str] = "",
) -> Optional[Order]:
    """Cancel an order and return its quantities to stock as one unit of work."""

    def _op() -> Optional[Order]:
        cancelled = order_service.cancel_order(repo, order_id, customer_email, commit=False)
        if cancelled is None:
            return None
        restore_on_cancel(inventory, cancelled, commit=False)
        _commit_both(repo, inventory)
        return cancelled

    return run_with_retry(
        _op,
        rollback=lambda: _rollback_both(repo, inventory),
        attempts=order_service.retry_attempts(),
    )


def update_shipping_and_restore(
    repo: OrderRepository,
    inventory: InventoryStore,
    order_id: str,
    shipping_status,
    actor: Optional[str] = order_service.DEFAULT_ACTOR,
) -> Optional[Order]:
    """
    Operator shipping update; a move to cancelled also returns stock.

    The shipping change and the restock commit together, like
    cancel_and_restore. Returns None when the update is a no-op.
    """

    def _op() -> Optional[Order]:
        updated = order_service.update_shipping_status(repo, order_id, shipping_status, actor, commit=False)
        if updated is None:
            return None
        # update_shipping_status refuses cancelled orders, so this is a fresh cancellation
        if updated.is_cancelled:
            restore_on_cancel(inventory, updated, commit=False)
        _commit_both(repo, inventory)
        return updated

    return run_with_retry(
        _op,
        rollback=lambda: _rollback_both(repo, inventory),
        attempts=order_service.retry_attempts(),
    )
