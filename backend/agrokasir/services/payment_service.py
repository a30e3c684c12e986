# Overview: Service-layer operations for payment; encapsulates business logic and database work.

"""
Payment Application Service

Credit sales (Piutang) are settled over time. Each payment is appended
to the sale and the sale's amount_paid / payment_status are recomputed in
the same transaction.

DESIGN PRINCIPLES:
- Payments are separate from sales (many-to-one relationship)
- Payments are append-only; there are no voids or refunds
- amount_paid always equals the sum of the sale's payments
- payment_status is a pure function of amount_paid vs grand_total
- An incremental payment may not exceed the remaining balance
  (overpayment at checkout is handled by sales_service and is allowed)
"""

from __future__ import annotations

import logging

from sqlalchemy import func

from ..errors import OverpaymentRejectedError, SaleNotFoundError, ValidationError
from ..extensions import db
from ..models import Payment, Sale
from ..models.sales import (
    PAYMENT_METHODS,
    PAYMENT_STATUS_PAID,
    PAYMENT_STATUS_PARTIAL,
    PAYMENT_STATUS_UNPAID,
)
from agrokasir.time_utils import utcnow
from .concurrency import begin_write, lock_for_update, run_with_retry

log = logging.getLogger(__name__)


def settlement_status(amount_paid: int, grand_total: int) -> str:
    """
    Lunas if paid >= total, Sebagian if 0 < paid < total, else Piutang.

    A zero-total sale is Lunas as soon as it exists.
    """
    if amount_paid >= grand_total:
        return PAYMENT_STATUS_PAID
    if amount_paid > 0:
        return PAYMENT_STATUS_PARTIAL
    return PAYMENT_STATUS_UNPAID


def add_payment(
    sale_id: int,
    amount: int,
    method: str,
    ref_no: str | None = None,
    actor: int | None = None,
) -> Payment:
    """
    Apply a payment to an existing sale.

    Returns:
        The created Payment

    Raises:
        ValidationError: bad saleId, amount not a positive integer, unknown method
        SaleNotFoundError: sale does not exist
        OverpaymentRejectedError: amount exceeds the remaining balance
    """
    if isinstance(sale_id, bool) or not isinstance(sale_id, int):
        raise ValidationError("saleId must be an integer")
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise ValidationError("amount must be a positive integer")
    if method not in PAYMENT_METHODS:
        raise ValidationError(f"method must be one of {', '.join(PAYMENT_METHODS)}")

    def _op() -> Payment:
        begin_write()
        sale = lock_for_update(db.session.query(Sale).filter_by(id=sale_id)).populate_existing().first()
        if sale is None:
            raise SaleNotFoundError("Sale not found", details={"saleId": sale_id})

        paid = int(
            db.session.query(func.coalesce(func.sum(Payment.amount), 0))
            .filter(Payment.sale_id == sale.id)
            .scalar()
        )
        due = sale.grand_total - paid
        if amount > due:
            raise OverpaymentRejectedError(
                "Amount exceeds the remaining balance",
                details={"saleId": sale.id, "amountDue": max(due, 0), "amount": amount},
            )

        payment = Payment(
            sale_id=sale.id,
            amount=amount,
            method=method,
            ref_no=ref_no,
            date=utcnow(),
            created_by_user_id=actor,
        )
        db.session.add(payment)

        new_paid = paid + amount
        sale.amount_paid = new_paid
        sale.payment_status = settlement_status(new_paid, sale.grand_total)

        db.session.commit()
        log.info(
            "payment_applied sale_id=%s payment_id=%s amount=%s paid=%s status=%s actor=%s",
            sale.id, payment.id, amount, new_paid, sale.payment_status, actor,
        )
        return payment

    return run_with_retry(_op)


def get_sale_payments(sale_id: int) -> list[Payment]:
    """All payments of a sale, oldest first."""
    if db.session.get(Sale, sale_id) is None:
        raise SaleNotFoundError("Sale not found", details={"saleId": sale_id})
    return (
        db.session.query(Payment)
        .filter_by(sale_id=sale_id)
        .order_by(Payment.date, Payment.id)
        .all()
    )


def payment_summary(sale_id: int) -> dict:
    sale = db.session.get(Sale, sale_id)
    if sale is None:
        raise SaleNotFoundError("Sale not found", details={"saleId": sale_id})
    return {
        "saleId": sale.id,
        "invoiceNo": sale.invoice_no,
        "grandTotal": sale.grand_total,
        "amountPaid": sale.amount_paid,
        "amountDue": max(sale.amount_due, 0),
        "paymentStatus": sale.payment_status,
    }
