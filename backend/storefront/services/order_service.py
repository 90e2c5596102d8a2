# Overview: Service-layer operations for the order lifecycle state machine.

"""
Order Lifecycle Service

STATE MACHINE over (status, shipping_status):

    create        -> (pending, awaiting_confirmation)
                     or (confirmed, processing) when auto-confirmed
    confirm       status != cancelled
                  -> status=confirmed; awaiting_confirmation becomes processing;
                     confirmed_at set once
    ship(next)    status != cancelled and next != current shipping status
                  -> shipping_status=next; next=cancelled also cancels status
    cancel        can_be_cancelled(order)
                  -> (cancelled, cancelled)

RULES:
1. Every successful mutation appends exactly one timeline entry
   (create with auto-confirm appends two: placed + auto-confirmed).
2. Timeline entries are never edited or reordered.
3. A cancelled order is never mutated again.
4. Unknown id or failed precondition returns None; nothing is written.

Each mutation reloads the whole collection, replaces one record and saves
the whole collection back. The save is version-checked by the record
store, and on conflict the complete read-modify-write is retried.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Callable, Iterable, Optional

from flask import current_app, has_app_context

from ..models.orders import (
    NON_CANCELLABLE_SHIPPING,
    ORDER_CANCELLED,
    ORDER_CONFIRMED,
    ORDER_PENDING,
    SHIPPING_AWAITING_CONFIRMATION,
    SHIPPING_CANCELLED,
    SHIPPING_PROCESSING,
    SHIPPING_STATUS_LABELS,
    Order,
    TimelineEntry,
)
from ..time_utils import utcnow_z
from .concurrency import run_with_retry
from .normalization import (
    compute_subtotal,
    new_id,
    normalize_email,
    normalize_order,
    normalize_shipping_status,
    safe_integer,
    sanitize_line_items,
)
from .order_repository import OrderRepository


logger = logging.getLogger(__name__)

DEFAULT_ACTOR = "admin"

MSG_PLACED = "Order placed by customer"
MSG_AUTO_CONFIRMED = "Order auto-confirmed by system"
MSG_CANCELLED = "Order cancelled by customer"


def retry_attempts() -> int:
    if has_app_context():
        return int(current_app.config.get("CONCURRENCY_RETRY_ATTEMPTS", 3))
    return 3


def _entry(at: str, message: str) -> TimelineEntry:
    return TimelineEntry(id=new_id(), at=at, message=message)


def _actor_label(actor: Optional[str]) -> str:
    label = str(actor or "").strip()
    return label or DEFAULT_ACTOR


def run_write(repo: OrderRepository, op: Callable, *, commit: bool):
    """
    Run op as one retryable unit when it owns the commit.

    Callers composing several writes (commit=False) own the retry themselves.
    """
    if not commit:
        return op()
    return run_with_retry(op, rollback=repo.rollback, attempts=retry_attempts())


def _mutate(
    repo: OrderRepository,
    order_id: str,
    transform: Callable[[Order, str], Optional[Order]],
    *,
    commit: bool,
) -> Optional[Order]:
    orders = repo.load_all()
    index = next((i for i, order in enumerate(orders) if order.id == order_id), None)
    if index is None:
        return None

    updated = transform(orders[index], utcnow_z())
    if updated is None:
        return None

    updated = normalize_order(updated)
    orders[index] = updated
    repo.save_all(orders, commit=commit)
    return updated


def can_be_cancelled(order: Optional[Order]) -> bool:
    """Pure precondition for cancel_order, for callers deciding whether to offer it."""
    if order is None:
        return False
    if order.status == ORDER_CANCELLED:
        return False
    return order.shipping_status not in NON_CANCELLABLE_SHIPPING


def create_order(
    repo: OrderRepository,
    *,
    customer_email: str,
    items: Iterable,
    auto_confirm: bool,
    customer_id: Optional[str] = None,
    subtotal=None,
    commit: bool = True,
) -> Optional[Order]:
    """
    Create an order from a cart snapshot.

    auto_confirm is the operator policy, passed in explicitly. Returns None
    when no valid line item remains after sanitizing.
    """
    line_items = sanitize_line_items(list(items or []))
    if not line_items:
        return None

    def _op():
        now = utcnow_z()
        confirmed = bool(auto_confirm)
        timeline = [_entry(now, MSG_PLACED)]
        if confirmed:
            timeline.append(_entry(now, MSG_AUTO_CONFIRMED))

        order = normalize_order(Order(
            id=new_id(),
            customer_id=str(customer_id) if customer_id is not None else None,
            customer_email=normalize_email(customer_email),
            status=ORDER_CONFIRMED if confirmed else ORDER_PENDING,
            shipping_status=SHIPPING_PROCESSING if confirmed else SHIPPING_AWAITING_CONFIRMATION,
            subtotal=safe_integer(subtotal, compute_subtotal(line_items)),
            created_at=now,
            updated_at=now,
            confirmed_at=now if confirmed else None,
            items=line_items,
            timeline=tuple(timeline),
        ))

        repo.save_all([order, *repo.load_all()], commit=commit)
        return order

    order = run_write(repo, _op, commit=commit)
    logger.info("Order %s placed by %s (status=%s)", order.id, order.customer_email, order.status)
    return order


def confirm_order(
    repo: OrderRepository,
    order_id: str,
    actor: Optional[str] = DEFAULT_ACTOR,
    *,
    commit: bool = True,
) -> Optional[Order]:
    label = _actor_label(actor)

    def _transform(order: Order, now: str) -> Optional[Order]:
        if order.status == ORDER_CANCELLED:
            return None
        shipping = order.shipping_status
        if shipping == SHIPPING_AWAITING_CONFIRMATION:
            shipping = SHIPPING_PROCESSING
        return replace(
            order,
            status=ORDER_CONFIRMED,
            shipping_status=shipping,
            confirmed_at=order.confirmed_at or now,
            updated_at=now,
            timeline=order.timeline + (_entry(now, f"Order confirmed by {label}"),),
        )

    updated = run_write(repo, lambda: _mutate(repo, order_id, _transform, commit=commit), commit=commit)
    if updated is not None:
        logger.info("Order %s confirmed by %s", order_id, label)
    return updated


def update_shipping_status(
    repo: OrderRepository,
    order_id: str,
    shipping_status,
    actor: Optional[str] = DEFAULT_ACTOR,
    *,
    commit: bool = True,
) -> Optional[Order]:
    """
    Move shipping forward (or sideways); unknown values coerce to awaiting_confirmation.

    No-op (None) when the order is cancelled or already has that shipping status.
    """
    next_status = normalize_shipping_status(shipping_status)
    label = _actor_label(actor)

    def _transform(order: Order, now: str) -> Optional[Order]:
        if order.status == ORDER_CANCELLED:
            return None
        if order.shipping_status == next_status:
            return None
        return replace(
            order,
            shipping_status=next_status,
            status=ORDER_CANCELLED if next_status == SHIPPING_CANCELLED else order.status,
            updated_at=now,
            timeline=order.timeline + (
                _entry(now, f'Shipping updated to "{SHIPPING_STATUS_LABELS[next_status]}" by {label}'),
            ),
        )

    updated = run_write(repo, lambda: _mutate(repo, order_id, _transform, commit=commit), commit=commit)
    if updated is not None:
        logger.info("Order %s shipping set to %s by %s", order_id, next_status, label)
    return updated


def cancel_order(
    repo: OrderRepository,
    order_id: str,
    customer_email: Optional[str] = "",
    *,
    commit: bool = True,
) -> Optional[Order]:
    """
    Customer cancellation.

    When customer_email is given the order must belong to that customer.
    Inventory is not touched here; see checkout_service.cancel_and_restore.
    """
    owner = normalize_email(customer_email)

    def _transform(order: Order, now: str) -> Optional[Order]:
        if owner and order.customer_email != owner:
            return None
        if not can_be_cancelled(order):
            return None
        return replace(
            order,
            status=ORDER_CANCELLED,
            shipping_status=SHIPPING_CANCELLED,
            updated_at=now,
            timeline=order.timeline + (_entry(now, MSG_CANCELLED),),
        )

    updated = run_write(repo, lambda: _mutate(repo, order_id, _transform, commit=commit), commit=commit)
    if updated is not None:
        logger.info("Order %s cancelled by customer", order_id)
    return updated


def get_order(repo: OrderRepository, order_id: str) -> Optional[Order]:
    return repo.get(order_id)


def get_orders_for_customer(repo: OrderRepository, email) -> list[Order]:
    return repo.find_by_customer(email)


def list_orders(repo: OrderRepository) -> list[Order]:
    return repo.load_all()


def renormalize_all(repo: OrderRepository) -> int:
    """Rewrite the stored collection in normalized form; returns the order count."""
    return len(run_write(repo, lambda: repo.save_all(repo.load_all()), commit=True))
