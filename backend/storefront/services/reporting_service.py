# Overview: Read-only revenue and inventory metrics derived from order and stock snapshots.

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional

from ..models.orders import ORDER_CONFIRMED, ORDER_PENDING, Order
from ..time_utils import try_parse_iso_datetime, utcnow
from .inventory_service import InventoryStore
from .normalization import normalize_order, safe_integer
from .order_repository import OrderRepository, default_repository


class ReportError(Exception):
    """Raised when report parameters are invalid."""
    pass


PERIOD_FORMATS = {
    "day": "%Y-%m-%d",
    "month": "%Y-%m",
}


def _snapshot(orders: Optional[Iterable], repository: Optional[OrderRepository]) -> list[Order]:
    if orders is not None:
        return [normalize_order(order) for order in orders]
    if repository is None:
        repository = default_repository()
    return repository.load_all()


def _period_key(order: Order, fmt: str) -> Optional[str]:
    created = try_parse_iso_datetime(order.created_at)
    return created.strftime(fmt) if created else None


def revenue_metrics(
    orders: Optional[Iterable] = None,
    *,
    repository: Optional[OrderRepository] = None,
    now: Optional[datetime] = None,
) -> dict:
    """
    Revenue over confirmed orders, bucketed by created_at (UTC calendar).

    Uses the given snapshot when supplied; otherwise loads the repository.
    pending_count counts pending orders across the whole snapshot.
    """
    snapshot = _snapshot(orders, repository)
    now = now or utcnow()
    today_key = now.strftime(PERIOD_FORMATS["day"])
    month_key = now.strftime(PERIOD_FORMATS["month"])

    confirmed = [order for order in snapshot if order.status == ORDER_CONFIRMED]

    return {
        "total_revenue": sum(safe_integer(order.subtotal) for order in confirmed),
        "today_revenue": sum(
            safe_integer(order.subtotal) for order in confirmed
            if _period_key(order, PERIOD_FORMATS["day"]) == today_key
        ),
        "month_revenue": sum(
            safe_integer(order.subtotal) for order in confirmed
            if _period_key(order, PERIOD_FORMATS["month"]) == month_key
        ),
        "confirmed_count": len(confirmed),
        "pending_count": sum(1 for order in snapshot if order.status == ORDER_PENDING),
        "total_orders": len(snapshot),
    }


def revenue_by_period(
    orders: Optional[Iterable] = None,
    *,
    repository: Optional[OrderRepository] = None,
    group_by: str = "day",
) -> dict:
    fmt = PERIOD_FORMATS.get(group_by)
    if fmt is None:
        raise ReportError("group_by must be day or month")

    buckets: dict[str, dict] = {}
    for order in _snapshot(orders, repository):
        if order.status != ORDER_CONFIRMED:
            continue
        key = _period_key(order, fmt)
        bucket = buckets.setdefault(key, {"period": key, "orders_count": 0, "items_sold": 0, "revenue": 0})
        bucket["orders_count"] += 1
        bucket["items_sold"] += sum(item.quantity for item in order.items)
        bucket["revenue"] += order.subtotal

    return {"group_by": group_by, "rows": [buckets[key] for key in sorted(buckets)]}


def inventory_summary(products: Iterable, inventory: InventoryStore, *, low_stock_threshold: int = 5) -> dict:
    """Catalog-wide stock figures; products are catalog entries with id and price."""
    total_products = 0
    total_units = 0
    inventory_value = 0
    low_stock_count = 0
    for product in products:
        stock = inventory.get_stock(product.id)
        total_products += 1
        total_units += stock
        inventory_value += safe_integer(product.price) * stock
        if stock <= low_stock_threshold:
            low_stock_count += 1

    return {
        "total_products": total_products,
        "total_units": total_units,
        "inventory_value": inventory_value,
        "low_stock_count": low_stock_count,
        "low_stock_threshold": low_stock_threshold,
    }
