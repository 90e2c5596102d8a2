"""
Order records.

Orders are not ORM rows: the whole collection is serialized under one key
of the record store (see models/records.py). These dataclasses are the
fully-valid, normalized shape; services/normalization.py is the only way
loosely-typed stored data becomes one of them.

STATUS:
    pending -> confirmed
    pending | confirmed -> cancelled      (cancelled is terminal)

SHIPPING STATUS (progresses independently of status):
    awaiting_confirmation (initial), processing, shipped, delivered,
    cancelled (terminal, forces status=cancelled)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Optional


ORDER_PENDING = "pending"
ORDER_CONFIRMED = "confirmed"
ORDER_CANCELLED = "cancelled"
ORDER_STATUSES = (ORDER_PENDING, ORDER_CONFIRMED, ORDER_CANCELLED)
OrderStatus = Literal["pending", "confirmed", "cancelled"]

SHIPPING_AWAITING_CONFIRMATION = "awaiting_confirmation"
SHIPPING_PROCESSING = "processing"
SHIPPING_SHIPPED = "shipped"
SHIPPING_DELIVERED = "delivered"
SHIPPING_CANCELLED = "cancelled"
SHIPPING_STATUSES = (
    SHIPPING_AWAITING_CONFIRMATION,
    SHIPPING_PROCESSING,
    SHIPPING_SHIPPED,
    SHIPPING_DELIVERED,
    SHIPPING_CANCELLED,
)
ShippingStatus = Literal["awaiting_confirmation", "processing", "shipped", "delivered", "cancelled"]

ORDER_STATUS_LABELS = {
    ORDER_PENDING: "Pending",
    ORDER_CONFIRMED: "Confirmed",
    ORDER_CANCELLED: "Cancelled",
}

SHIPPING_STATUS_LABELS = {
    SHIPPING_AWAITING_CONFIRMATION: "Awaiting confirmation",
    SHIPPING_PROCESSING: "Processing",
    SHIPPING_SHIPPED: "Shipped",
    SHIPPING_DELIVERED: "Delivered",
    SHIPPING_CANCELLED: "Cancelled",
}

# Shipping states past which a customer can no longer cancel
NON_CANCELLABLE_SHIPPING = frozenset({SHIPPING_SHIPPED, SHIPPING_DELIVERED, SHIPPING_CANCELLED})


@dataclass(frozen=True)
class LineItem:
    """Product-quantity-price snapshot taken at checkout."""
    product_id: str
    product_name: str
    unit_price: int
    quantity: int
    image: str = ""
    category: str = ""

    @property
    def line_total(self) -> int:
        return self.unit_price * self.quantity

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "product_name": self.product_name,
            "unit_price": self.unit_price,
            "quantity": self.quantity,
            "image": self.image,
            "category": self.category,
        }


@dataclass(frozen=True)
class TimelineEntry:
    id: str
    at: str
    message: str

    def to_dict(self) -> dict:
        return {"id": self.id, "at": self.at, "message": self.message}


@dataclass(frozen=True)
class Order:
    id: str
    customer_id: Optional[str]
    customer_email: str
    status: str
    shipping_status: str
    subtotal: int
    created_at: str
    updated_at: str
    confirmed_at: Optional[str] = None
    items: tuple[LineItem, ...] = field(default_factory=tuple)
    timeline: tuple[TimelineEntry, ...] = field(default_factory=tuple)

    @property
    def is_cancelled(self) -> bool:
        return self.status == ORDER_CANCELLED

    @property
    def status_label(self) -> str:
        return ORDER_STATUS_LABELS[self.status]

    @property
    def shipping_status_label(self) -> str:
        return SHIPPING_STATUS_LABELS[self.shipping_status]

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "customer_id": self.customer_id,
            "customer_email": self.customer_email,
            "status": self.status,
            "shipping_status": self.shipping_status,
            "subtotal": self.subtotal,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "confirmed_at": self.confirmed_at,
            "items": [item.to_dict() for item in self.items],
            "timeline": [entry.to_dict() for entry in self.timeline],
        }
