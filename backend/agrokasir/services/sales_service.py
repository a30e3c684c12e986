"""
Sales Service - POS checkout

A sale is recorded in one all-or-nothing transaction: header, lines,
stock decrement with ledger rows and the optional initial payment. Either
everything is visible afterwards or nothing is.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError

from ..errors import (
    InsufficientStockError,
    InvoiceConflictError,
    NotFoundError,
    ProductNotFoundError,
    SaleNotFoundError,
    ValidationError,
)
from ..extensions import db
from ..models import Customer, Payment, Product, Sale, SaleItem
from ..models.inventory import REASON_SALE
from ..models.sales import (
    METHOD_CASH,
    OPEN_PAYMENT_STATUSES,
    PAYMENT_METHODS,
    PAYMENT_STATUS_PAID,
)
from agrokasir.time_utils import utcnow
from .concurrency import begin_write, lock_for_update, run_with_retry
from .inventory_service import apply_movement
from .invoice_service import next_invoice_number
from .payment_service import settlement_status

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class PricedLine:
    product_id: int
    qty: int
    unit_price: int

    @property
    def line_total(self) -> int:
        return self.unit_price * self.qty


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _normalize_items(items) -> list[tuple[int, int]]:
    if not isinstance(items, list) or not items:
        raise ValidationError("items must be a non-empty list")

    normalized = []
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            raise ValidationError(f"items[{index}] must be an object")
        product_id = item.get("productId")
        qty = item.get("qty")
        if not _is_int(product_id):
            raise ValidationError(f"items[{index}].productId must be an integer")
        if not _is_int(qty) or qty <= 0:
            raise ValidationError(f"items[{index}].qty must be a positive integer")
        normalized.append((product_id, qty))
    return normalized


def _resolve_products(product_ids, *, lock: bool = False) -> dict[int, Product]:
    """One batch lookup; inactive products count as missing."""
    query = db.session.query(Product).filter(
        Product.id.in_(set(product_ids)),
        Product.is_active.is_(True),
    )
    if lock:
        query = lock_for_update(query.order_by(Product.id)).populate_existing()
    products = {p.id: p for p in query.all()}

    missing = sorted(set(product_ids) - set(products))
    if missing:
        raise ProductNotFoundError("Product not found", details={"productIds": missing})
    return products


def _price_lines(products: dict[int, Product], items: list[tuple[int, int]]) -> list[PricedLine]:
    """
    Price every line from the catalog and check stock.

    Quantities of repeated products are summed before comparing with
    on-hand, so two lines cannot together oversell one product.
    """
    requested: Counter[int] = Counter()
    lines = []
    for product_id, qty in items:
        product = products[product_id]
        requested[product_id] += qty
        if product.stock_qty < requested[product_id]:
            raise InsufficientStockError(
                f"Insufficient stock: {product.name}",
                details={
                    "productId": product.id,
                    "productName": product.name,
                    "onHand": product.stock_qty,
                    "requested": requested[product_id],
                },
            )
        lines.append(PricedLine(product_id=product_id, qty=qty, unit_price=product.sell_price))
    return lines


def create_sale(
    items,
    *,
    customer_id: int | None = None,
    note: str | None = None,
    amount_paid: int = 0,
    method: str = METHOD_CASH,
    actor: int | None = None,
) -> Sale:
    """
    Create a sale, decrement stock and record the initial payment.

    Args:
        items: [{"productId": int, "qty": int}, ...], non-empty
        customer_id: optional existing customer
        note: optional free text
        amount_paid: amount collected at checkout (>= 0). Paying more than
            the total is accepted here (change is given) and the sale is
            simply Lunas.
        method: Tunai, Transfer or QRIS
        actor: user id recorded on the sale, movements and payment

    Returns:
        The committed Sale

    Raises:
        ValidationError, ProductNotFoundError, NotFoundError (customer),
        InsufficientStockError, InvoiceConflictError
    """
    lines_in = _normalize_items(items)

    if amount_paid is None:
        amount_paid = 0
    if not _is_int(amount_paid) or amount_paid < 0:
        raise ValidationError("amountPaid must be a non-negative integer")
    if method is None:
        method = METHOD_CASH
    if method not in PAYMENT_METHODS:
        raise ValidationError(f"method must be one of {', '.join(PAYMENT_METHODS)}")
    if customer_id is not None and not _is_int(customer_id):
        raise ValidationError("customerId must be an integer")

    product_ids = [product_id for product_id, _ in lines_in]

    def _op() -> Sale:
        # Pre-check without the write lock so a request that is going to be
        # rejected does not consume an invoice number.
        _price_lines(_resolve_products(product_ids), lines_in)
        if customer_id is not None and db.session.get(Customer, customer_id) is None:
            raise NotFoundError("Customer not found", details={"customerId": customer_id})

        now = utcnow()
        invoice_no = next_invoice_number(now)

        # Authoritative check under lock
        begin_write()
        products = _resolve_products(product_ids, lock=True)
        priced = _price_lines(products, lines_in)

        grand_total = sum(line.line_total for line in priced)

        sale = Sale(
            invoice_no=invoice_no,
            customer_id=customer_id,
            note=note,
            date=now,
            grand_total=grand_total,
            amount_paid=amount_paid,
            payment_status=settlement_status(amount_paid, grand_total),
            created_by_user_id=actor,
        )
        sale.items = [
            SaleItem(
                product_id=line.product_id,
                qty=line.qty,
                unit_price=line.unit_price,
                line_total=line.line_total,
            )
            for line in priced
        ]
        db.session.add(sale)
        try:
            db.session.flush()
        except IntegrityError as exc:
            if "invoice_no" not in str(exc.orig):
                raise
            raise InvoiceConflictError(
                "Invoice number already in use, please retry",
                details={"invoiceNo": invoice_no},
            ) from exc

        for line in priced:
            apply_movement(
                line.product_id,
                -line.qty,
                REASON_SALE,
                actor,
                ref_id=sale.id,
                product=products[line.product_id],
            )

        if amount_paid > 0:
            db.session.add(Payment(
                sale_id=sale.id,
                amount=amount_paid,
                method=method,
                date=now,
                created_by_user_id=actor,
            ))

        db.session.commit()
        log.info(
            "sale_created sale_id=%s invoice_no=%s lines=%d total=%s paid=%s actor=%s",
            sale.id, sale.invoice_no, len(priced), grand_total, amount_paid, actor,
        )
        return sale

    return run_with_retry(_op)


def get_sale(sale_id: int) -> Sale:
    sale = db.session.get(Sale, sale_id)
    if sale is None:
        raise SaleNotFoundError("Sale not found", details={"saleId": sale_id})
    return sale


def list_sales(status: str | None = None) -> list[Sale]:
    """
    Sales newest first.

    status "open" selects Piutang and Sebagian; any other non-empty value
    selects Lunas.
    """
    query = db.session.query(Sale)
    if status:
        if status == "open":
            query = query.filter(Sale.payment_status.in_(OPEN_PAYMENT_STATUSES))
        else:
            query = query.filter(Sale.payment_status == PAYMENT_STATUS_PAID)
    return query.order_by(Sale.date.desc(), Sale.id.desc()).all()


def get_sale_detail(sale_id: int) -> dict:
    """
    Invoice view: sale, items with product info, payments and customer.

    Items of products deactivated since the sale still resolve.
    """
    sale = get_sale(sale_id)

    items = []
    for item in sale.items:
        product = item.product
        items.append({
            "productId": item.product_id,
            "productName": product.name if product else "-",
            "unit": product.unit if product else "-",
            "qty": item.qty,
            "unitPrice": item.unit_price,
            "lineTotal": item.line_total,
            "expiryDate": product.to_dict()["expiryDate"] if product else None,
        })

    detail = sale.to_dict()
    detail.update({
        "customer": sale.customer.to_summary() if sale.customer else None,
        "amountPaid": sum(p.amount for p in sale.payments),
        "amountDue": sale.amount_due,
        "items": items,
        "payments": [p.to_dict() for p in sale.payments],
    })
    return detail
