from __future__ import annotations

from ..extensions import db
from agrokasir.time_utils import to_utc_z


# Settlement status (wire values kept from the POS frontend)
PAYMENT_STATUS_UNPAID = "Piutang"
PAYMENT_STATUS_PARTIAL = "Sebagian"
PAYMENT_STATUS_PAID = "Lunas"

PAYMENT_STATUSES = (PAYMENT_STATUS_UNPAID, PAYMENT_STATUS_PARTIAL, PAYMENT_STATUS_PAID)
OPEN_PAYMENT_STATUSES = (PAYMENT_STATUS_UNPAID, PAYMENT_STATUS_PARTIAL)

# Payment methods
METHOD_CASH = "Tunai"
METHOD_TRANSFER = "Transfer"
METHOD_QRIS = "QRIS"

PAYMENT_METHODS = (METHOD_CASH, METHOD_TRANSFER, METHOD_QRIS)


class Sale(db.Model):
    """
    Sale header.

    grand_total is fixed at creation. amount_paid only grows and always
    equals the sum of the sale's payments; payment_status is derived from
    amount_paid vs grand_total (see payment_service.settlement_status).
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.UniqueConstraint("invoice_no", name="uq_sales_invoice_no"),
        db.Index("ix_sales_status_date", "payment_status", "date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Human-readable invoice number (e.g., "INV-202504-000123")
    invoice_no = db.Column(db.String(64), nullable=False)

    customer_id = db.Column(
        db.Integer,
        db.ForeignKey("customers.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    date = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)

    grand_total = db.Column(db.Integer, nullable=False)
    amount_paid = db.Column(db.Integer, nullable=False, default=0)
    payment_status = db.Column(db.String(16), nullable=False, default=PAYMENT_STATUS_UNPAID)

    note = db.Column(db.Text, nullable=True)

    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    version_id = db.Column(db.Integer, nullable=False, default=1)

    customer = db.relationship("Customer", backref=db.backref("sales", lazy=True, passive_deletes=True))
    items = db.relationship(
        "SaleItem",
        backref="sale",
        lazy=True,
        order_by="SaleItem.id",
        cascade="all, delete-orphan",
    )
    payments = db.relationship(
        "Payment",
        backref="sale",
        lazy=True,
        order_by="Payment.id",
        cascade="all, delete-orphan",
    )
    __mapper_args__ = {"version_id_col": version_id}

    @property
    def amount_due(self) -> int:
        return self.grand_total - self.amount_paid

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "invoiceNo": self.invoice_no,
            "customerId": self.customer_id,
            "date": to_utc_z(self.date),
            "grandTotal": self.grand_total,
            "amountPaid": self.amount_paid,
            "paymentStatus": self.payment_status,
            "note": self.note,
            "createdByUserId": self.created_by_user_id,
            "createdAt": to_utc_z(self.created_at),
        }


class SaleItem(db.Model):
    """Line item; unit_price is a snapshot of Product.sell_price at sale time."""
    __tablename__ = "sale_items"
    __table_args__ = (
        db.CheckConstraint("qty > 0", name="ck_sale_items_qty_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id", ondelete="RESTRICT"), nullable=False, index=True)

    qty = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Integer, nullable=False)
    line_total = db.Column(db.Integer, nullable=False)

    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "saleId": self.sale_id,
            "productId": self.product_id,
            "qty": self.qty,
            "unitPrice": self.unit_price,
            "lineTotal": self.line_total,
        }


class Payment(db.Model):
    """
    Payment against a sale. Append-only: never updated or deleted.

    DESIGN: one sale may collect several payments over time (credit sales
    settled in installments). The sale's amount_paid is updated in the same
    transaction as every insert here.
    """
    __tablename__ = "payments"
    __table_args__ = (
        db.CheckConstraint("amount > 0", name="ck_payments_amount_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id", ondelete="CASCADE"), nullable=False, index=True)

    amount = db.Column(db.Integer, nullable=False)
    method = db.Column(db.String(16), nullable=False)

    # Transfer / QRIS reference
    ref_no = db.Column(db.String(128), nullable=True)

    date = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)
    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "saleId": self.sale_id,
            "amount": self.amount,
            "method": self.method,
            "refNo": self.ref_no,
            "date": to_utc_z(self.date),
            "createdByUserId": self.created_by_user_id,
            "createdAt": to_utc_z(self.created_at),
        }
