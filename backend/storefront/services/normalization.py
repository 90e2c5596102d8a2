# Overview: Total coercion of loosely-typed stored order data into valid Order records.

"""
Order normalization.

normalize_order() is applied on every read and every write of the order
collection. It is total: any input (dict, Order, None, garbage) yields a
valid Order, and it is idempotent: normalizing a normalized order returns
an equal order.

Coercion rules:
- integers: non-finite or unparsable -> fallback; always floor() and clamp at 0
- quantity: additionally clamped to >= 1
- status: case-insensitive match, unknown -> pending
- shipping_status: exact match, unknown or missing -> awaiting_confirmation
- shipping_status cancelled forces status cancelled
- line items without a product id are dropped
- missing timeline / items (or non-list values) become empty
- legacy field names (user_id, user_email, item id/name/price) are accepted
"""

from __future__ import annotations

import math
import uuid
from typing import Any, Iterable, Optional

from ..models.orders import (
    LineItem,
    Order,
    TimelineEntry,
    ORDER_CANCELLED,
    ORDER_PENDING,
    ORDER_STATUSES,
    SHIPPING_AWAITING_CONFIRMATION,
    SHIPPING_CANCELLED,
    SHIPPING_STATUSES,
)
from ..time_utils import to_utc_z, try_parse_iso_datetime, utcnow_z


DEFAULT_ITEM_NAME = "Untitled item"
DEFAULT_TIMELINE_MESSAGE = "Order updated"


def new_id() -> str:
    return str(uuid.uuid4())


def safe_number(value: Any, fallback: float = 0) -> float:
    if value is None or isinstance(value, bool):
        return fallback
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return fallback
    if not math.isfinite(parsed):
        return fallback
    return parsed


def safe_integer(value: Any, fallback: float = 0) -> int:
    """Non-negative floor of value; fallback when value is not a finite number."""
    return max(0, math.floor(safe_number(value, fallback)))


def normalize_email(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip().lower()


def normalize_status(value: Any) -> str:
    if isinstance(value, str):
        candidate = value.strip().lower()
        if candidate in ORDER_STATUSES:
            return candidate
    return ORDER_PENDING


def normalize_shipping_status(value: Any) -> str:
    if isinstance(value, str) and value in SHIPPING_STATUSES:
        return value
    return SHIPPING_AWAITING_CONFIRMATION


def normalize_timestamp(value: Any, fallback: Optional[str] = None) -> str:
    """Canonical '...Z' form; unparsable or missing values take fallback (or now)."""
    parsed = try_parse_iso_datetime(value)
    if parsed is not None:
        return to_utc_z(parsed)
    if fallback is not None:
        return fallback
    return utcnow_z()


def _get(source: Any, *names: str) -> Any:
    """First non-None attribute/key among names."""
    for name in names:
        if isinstance(source, dict):
            value = source.get(name)
        else:
            value = getattr(source, name, None)
        if value is not None:
            return value
    return None


def _as_list(value: Any) -> list:
    if isinstance(value, (list, tuple)):
        return list(value)
    return []


def _text(value: Any, default: str = "") -> str:
    if value is None:
        return default
    return str(value)


def normalize_line_item(raw: Any) -> Optional[LineItem]:
    product_id = _text(_get(raw, "product_id", "id")).strip()
    if not product_id:
        return None
    return LineItem(
        product_id=product_id,
        product_name=_text(_get(raw, "product_name", "name"), DEFAULT_ITEM_NAME),
        unit_price=safe_integer(_get(raw, "unit_price", "price"), 0),
        quantity=max(1, safe_integer(_get(raw, "quantity"), 1)),
        image=_text(_get(raw, "image")),
        category=_text(_get(raw, "category")),
    )


def sanitize_line_items(raw_items: Any) -> tuple[LineItem, ...]:
    items = (normalize_line_item(raw) for raw in _as_list(raw_items))
    return tuple(item for item in items if item is not None)


def normalize_timeline_entry(raw: Any) -> TimelineEntry:
    message = _text(_get(raw, "message")).strip() or DEFAULT_TIMELINE_MESSAGE
    return TimelineEntry(
        id=_text(_get(raw, "id")) or new_id(),
        at=normalize_timestamp(_get(raw, "at")),
        message=message,
    )


def compute_subtotal(items: Iterable[LineItem]) -> int:
    return sum(item.line_total for item in items)


def normalize_order(raw: Any) -> Order:
    if not isinstance(raw, (dict, Order)):
        raw = {}

    items = sanitize_line_items(_get(raw, "items"))
    subtotal = safe_integer(_get(raw, "subtotal"), compute_subtotal(items))

    created_at = normalize_timestamp(_get(raw, "created_at"))
    updated_at = normalize_timestamp(_get(raw, "updated_at"), fallback=created_at)
    confirmed_raw = _get(raw, "confirmed_at")
    confirmed_at = normalize_timestamp(confirmed_raw, fallback=created_at) if confirmed_raw else None

    shipping_status = normalize_shipping_status(_get(raw, "shipping_status"))
    status = normalize_status(_get(raw, "status"))
    if shipping_status == SHIPPING_CANCELLED:
        status = ORDER_CANCELLED

    customer_id = _get(raw, "customer_id", "user_id")

    return Order(
        id=_text(_get(raw, "id")) or new_id(),
        customer_id=str(customer_id) if customer_id is not None else None,
        customer_email=normalize_email(_get(raw, "customer_email", "user_email")),
        status=status,
        shipping_status=shipping_status,
        subtotal=subtotal,
        created_at=created_at,
        updated_at=updated_at,
        confirmed_at=confirmed_at,
        items=items,
        timeline=tuple(normalize_timeline_entry(entry) for entry in _as_list(_get(raw, "timeline"))),
    )


def sort_newest_first(orders: Iterable[Order]) -> list[Order]:
    """Stable sort on created_at, newest first; ties keep collection order."""
    return sorted(orders, key=lambda order: try_parse_iso_datetime(order.created_at), reverse=True)
