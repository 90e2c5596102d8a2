# Overview: Service-layer operations for inventory; keyed numeric stock per product id.

"""
Inventory store.

Invariants (authoritative):
- A stock count is an integer >= 0. Missing products read as 0.
- set_stock stores max(0, floor(value)); non-finite or unparsable input stores 0.
- adjust_stock stores max(0, floor(current + delta)). It never raises for
  bad input: a non-finite delta leaves the count unchanged.
- Decrements clamp at zero rather than failing. Whether a sale is allowed
  is decided by checkout_service before any decrement happens.

Writes accept commit=False so checkout can commit the order and its stock
deltas together.
"""

from __future__ import annotations

import logging
import math
from typing import Optional

from ..extensions import db
from ..models import StockLevel
from ..persistence import translate_storage_errors
from .normalization import safe_integer, safe_number


logger = logging.getLogger(__name__)


class InventoryStore:
    def _read(self, product_id: str) -> Optional[int]:
        raise NotImplementedError

    def _write(self, product_id: str, quantity: int) -> None:
        raise NotImplementedError

    def commit(self) -> None:
        raise NotImplementedError

    def rollback(self) -> None:
        raise NotImplementedError

    def get_stock(self, product_id: str) -> int:
        current = self._read(str(product_id))
        return safe_integer(current, 0)

    def set_stock(self, product_id: str, value, *, commit: bool = True) -> int:
        quantity = safe_integer(value, 0)
        self._write(str(product_id), quantity)
        if commit:
            self.commit()
        return quantity

    def adjust_stock(self, product_id: str, delta, *, commit: bool = True) -> int:
        current = self.get_stock(product_id)
        step = safe_number(delta, 0)
        quantity = max(0, math.floor(current + step))
        self._write(str(product_id), quantity)
        if commit:
            self.commit()
        return quantity

    def snapshot(self, product_ids) -> dict[str, int]:
        return {str(pid): self.get_stock(pid) for pid in product_ids}


class SqlInventoryStore(InventoryStore):
    """StockLevel rows in the application database."""

    def __init__(self, session=None):
        self._session = session

    @property
    def session(self):
        return self._session if self._session is not None else db.session

    def _read(self, product_id: str) -> Optional[int]:
        with translate_storage_errors(f"stock read for {product_id!r}"):
            row = self.session.get(StockLevel, product_id)
        return row.quantity if row is not None else None

    def _write(self, product_id: str, quantity: int) -> None:
        with translate_storage_errors(f"stock write for {product_id!r}"):
            row = self.session.get(StockLevel, product_id)
            if row is None:
                self.session.add(StockLevel(product_id=product_id, quantity=quantity))
            else:
                row.quantity = quantity
            self.session.flush()

    def commit(self) -> None:
        with translate_storage_errors("stock commit"):
            self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()


class MemoryInventoryStore(InventoryStore):
    def __init__(self, initial: Optional[dict] = None):
        self._committed: dict[str, int] = {
            str(pid): safe_integer(qty, 0) for pid, qty in (initial or {}).items()
        }
        self._pending: dict[str, int] = {}

    def _read(self, product_id: str) -> Optional[int]:
        if product_id in self._pending:
            return self._pending[product_id]
        return self._committed.get(product_id)

    def _write(self, product_id: str, quantity: int) -> None:
        self._pending[product_id] = quantity

    def commit(self) -> None:
        self._committed.update(self._pending)
        self._pending.clear()

    def rollback(self) -> None:
        self._pending.clear()


def default_inventory() -> SqlInventoryStore:
    return SqlInventoryStore()


def set_stock_as(inventory: InventoryStore, product_id: str, value, actor: str = "admin") -> int:
    """Operator stock override; logged with the actor label."""
    quantity = inventory.set_stock(product_id, value)
    logger.info("Stock for %s set to %d by %s", product_id, quantity, actor or "admin")
    return quantity
