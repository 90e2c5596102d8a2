# Overview: Durable, newest-first collection of orders over a keyed record store.

from __future__ import annotations

import json
import logging
from typing import Iterable, Optional

from flask import current_app, has_app_context

from ..models.orders import Order
from ..persistence import RecordStore, SqlRecordStore
from .normalization import normalize_email, normalize_order, sort_newest_first


logger = logging.getLogger(__name__)

DEFAULT_ORDERS_KEY = "storefront.orders"


class OrderRepository:
    """
    Whole-collection order persistence.

    Every read and every write passes through normalize_order, so stored
    records that were hand-edited or partially written are coerced into
    valid orders instead of failing.

    STORAGE CORRUPTION: unparsable data, or data that is not a list, loads
    as an empty collection. This favors availability over strictness; the
    next save_all() replaces the corrupt value.
    """

    def __init__(self, store: RecordStore, key: str = DEFAULT_ORDERS_KEY):
        self.store = store
        self.key = key

    def load_all(self) -> list[Order]:
        raw = self.store.get(self.key)
        if not raw:
            return []
        try:
            parsed = json.loads(raw)
        except (TypeError, ValueError):
            logger.warning("Order data under %r is not valid JSON; treating as empty", self.key)
            return []
        if not isinstance(parsed, list):
            logger.warning("Order data under %r is not a list; treating as empty", self.key)
            return []
        return sort_newest_first(normalize_order(record) for record in parsed)

    def save_all(self, orders: Iterable, *, commit: bool = True) -> list[Order]:
        """Normalize, sort newest-first and persist the full collection."""
        normalized = sort_newest_first(normalize_order(order) for order in (orders or []))
        payload = json.dumps([order.to_dict() for order in normalized], separators=(",", ":"))
        self.store.put(self.key, payload)
        if commit:
            self.store.commit()
        return normalized

    def get(self, order_id: str) -> Optional[Order]:
        for order in self.load_all():
            if order.id == order_id:
                return order
        return None

    def find_by_customer(self, email) -> list[Order]:
        normalized_email = normalize_email(email)
        if not normalized_email:
            return []
        return [order for order in self.load_all() if order.customer_email == normalized_email]

    def commit(self) -> None:
        self.store.commit()

    def rollback(self) -> None:
        self.store.rollback()


def default_repository() -> OrderRepository:
    """Repository bound to the application database and configured key."""
    key = current_app.config.get("ORDERS_STORAGE_KEY", DEFAULT_ORDERS_KEY) if has_app_context() else DEFAULT_ORDERS_KEY
    return OrderRepository(SqlRecordStore(), key=key)
