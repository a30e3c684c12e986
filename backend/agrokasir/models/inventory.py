from __future__ import annotations

from ..extensions import db
from agrokasir.time_utils import to_utc_z


MOVEMENT_IN = "IN"
MOVEMENT_OUT = "OUT"
MOVEMENT_TYPES = (MOVEMENT_IN, MOVEMENT_OUT)

# Free-form reason tags used by this codebase
REASON_SALE = "Sale"
REASON_STOCK_IN = "StockIn"
REASON_OPENING_STOCK = "OpeningStock"


class StockMovement(db.Model):
    """
    Append-only inventory ledger entry.

    For every product: SUM(qty of IN) - SUM(qty of OUT) == Product.stock_qty.
    Rows are written only by inventory_service.apply_movement(), in the
    same transaction as the counter update.
    """
    __tablename__ = "stock_movements"
    __table_args__ = (
        db.CheckConstraint("qty > 0", name="ck_stock_movements_qty_positive"),
        db.Index("ix_stock_movements_product_date", "product_id", "date"),
        db.Index("ix_stock_movements_type_date", "type", "date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id", ondelete="RESTRICT"), nullable=False)

    type = db.Column(db.String(8), nullable=False)
    qty = db.Column(db.Integer, nullable=False)
    reason = db.Column(db.String(32), nullable=False)

    # Originating sale for OUT movements caused by a sale
    ref_id = db.Column(db.Integer, nullable=True, index=True)

    # Valuation of replenishments (stock-in / profit reports)
    unit_cost = db.Column(db.Integer, nullable=True)
    note = db.Column(db.String(255), nullable=True)

    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    date = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    product = db.relationship("Product")

    @property
    def signed_qty(self) -> int:
        return self.qty if self.type == MOVEMENT_IN else -self.qty

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "productId": self.product_id,
            "type": self.type,
            "qty": self.qty,
            "reason": self.reason,
            "refId": self.ref_id,
            "unitCost": self.unit_cost,
            "note": self.note,
            "userId": self.user_id,
            "date": to_utc_z(self.date),
        }


class InvoiceCounter(db.Model):
    """
    Per-period invoice sequence (period = YYYYMM).

    Only invoice_service touches this table, always with an atomic
    increment committed on its own connection.
    """
    __tablename__ = "invoice_counters"
    __table_args__ = (
        db.UniqueConstraint("period", name="uq_invoice_counters_period"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    period = db.Column(db.String(6), nullable=False)
    last_number = db.Column(db.Integer, nullable=False, default=0)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "period": self.period,
            "lastNumber": self.last_number,
            "updatedAt": to_utc_z(self.updated_at),
        }
