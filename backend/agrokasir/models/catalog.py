from __future__ import annotations

from ..extensions import db
from agrokasir.time_utils import to_utc_z


# Closed enumerations for product master data
CATEGORY_FERTILIZER = "Pupuk"
CATEGORY_MEDICINE = "Obat"
PRODUCT_CATEGORIES = (CATEGORY_FERTILIZER, CATEGORY_MEDICINE)

PRODUCT_UNITS = ("sak", "ml", "liter", "kg")

DEFAULT_MIN_STOCK = 5


class Product(db.Model):
    """
    Product master data.

    stock_qty is the on-hand counter maintained by the inventory ledger.
    It is never written directly: every change goes through
    inventory_service.apply_movement(), which appends a StockMovement in
    the same transaction.

    Products are never physically deleted once referenced by sale items or
    movements; "delete" flips is_active and hides them from listings.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.CheckConstraint("stock_qty >= 0", name="ck_products_stock_non_negative"),
        db.CheckConstraint("cost_price >= 0", name="ck_products_cost_non_negative"),
        db.CheckConstraint("sell_price >= 0", name="ck_products_sell_non_negative"),
        db.Index("ix_products_active_name", "is_active", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    category = db.Column(db.String(16), nullable=False)
    unit = db.Column(db.String(16), nullable=False)

    # Whole Rupiah
    cost_price = db.Column(db.Integer, nullable=False)
    sell_price = db.Column(db.Integer, nullable=False)

    stock_qty = db.Column(db.Integer, nullable=False, default=0)
    expiry_date = db.Column(db.DateTime(timezone=True), nullable=True)
    image_url = db.Column(db.String(512), nullable=True)

    # Reorder signal only, not enforced
    min_stock = db.Column(db.Integer, nullable=False, default=DEFAULT_MIN_STOCK)

    is_active = db.Column(db.Boolean, nullable=False, default=True)
    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r} stock_qty={self.stock_qty}>"

    @property
    def is_low_stock(self) -> bool:
        return self.stock_qty <= self.min_stock

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "unit": self.unit,
            "costPrice": self.cost_price,
            "sellPrice": self.sell_price,
            "stockQty": self.stock_qty,
            "expiryDate": to_utc_z(self.expiry_date),
            "imageUrl": self.image_url,
            "minStock": self.min_stock,
            "lowStock": self.is_low_stock,
            "isActive": self.is_active,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }


class Customer(db.Model):
    """Customer master data. Sales reference customers optionally."""
    __tablename__ = "customers"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(32), nullable=True)
    address = db.Column(db.String(512), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "phone": self.phone,
            "address": self.address,
            "notes": self.notes,
            "createdAt": to_utc_z(self.created_at),
        }

    def to_summary(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "phone": self.phone,
            "address": self.address,
        }
