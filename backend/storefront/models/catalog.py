from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class Product(db.Model):
    """
    Catalog entry.

    Product metadata belongs to the catalog. Orders copy name, price, image
    and category into their line items at checkout, so later catalog edits
    never rewrite placed orders.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_category_name", "category", "name"),
    )

    id = db.Column(db.String(64), primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    price = db.Column(db.Integer, nullable=False, default=0)
    category = db.Column(db.String(64), nullable=False, default="")
    image = db.Column(db.String(512), nullable=False, default="")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "price": self.price,
            "category": self.category,
            "image": self.image,
            "created_at": to_utc_z(self.created_at),
        }


class StockLevel(db.Model):
    """
    Available-to-sell quantity per product id.

    Deliberately not a foreign key to products: the inventory store is a
    separate keyed numeric store and a count may exist before the catalog
    entry does.
    """
    __tablename__ = "stock_levels"
    __table_args__ = (
        db.CheckConstraint("quantity >= 0", name="ck_stock_levels_nonnegative"),
    )

    product_id = db.Column(db.String(64), primary_key=True)
    quantity = db.Column(db.Integer, nullable=False, default=0)

    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "quantity": self.quantity,
            "updated_at": to_utc_z(self.updated_at),
        }
