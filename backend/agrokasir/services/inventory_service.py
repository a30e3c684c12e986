# Overview: Service-layer operations for the inventory ledger; encapsulates business logic and database work.

"""
Inventory ledger invariants (authoritative)

- Product.stock_qty is the on-hand counter. It is never negative.
- Every change to stock_qty is made by apply_movement(), which appends one
  StockMovement with the same magnitude and direction in the same
  transaction. Neither write can commit without the other.
- Therefore, for every product: SUM(IN.qty) - SUM(OUT.qty) == stock_qty.
- OUT movements caused by a sale carry the sale id in ref_id.
- IN movements from replenishment may carry unit_cost for valuation.
"""

from __future__ import annotations

import logging

from sqlalchemy import case, func

from ..errors import InsufficientStockError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Product, StockMovement
from ..models.inventory import MOVEMENT_IN, MOVEMENT_OUT, REASON_STOCK_IN
from agrokasir.time_utils import utcnow
from .concurrency import begin_write, lock_for_update, run_with_retry

log = logging.getLogger(__name__)


def _load_product(product_id: int, *, lock: bool = False) -> Product | None:
    query = db.session.query(Product).filter_by(id=product_id)
    if lock:
        query = lock_for_update(query).populate_existing()
    return query.first()


def get_on_hand(product_id: int) -> int:
    """Current on-hand quantity of a product."""
    product = _load_product(product_id)
    if product is None:
        raise NotFoundError("Product not found", details={"productId": product_id})
    return product.stock_qty


def apply_movement(
    product_id: int,
    delta: int,
    reason: str,
    actor: int | None = None,
    *,
    ref_id: int | None = None,
    unit_cost: int | None = None,
    note: str | None = None,
    product: Product | None = None,
) -> int:
    """
    Change a product's on-hand quantity by `delta` and record the movement.

    Positive delta is an IN movement, negative delta an OUT movement. Runs in
    the caller's transaction and does NOT commit. Callers that already hold
    the product row locked may pass it as `product`.

    Returns the new on-hand quantity.

    Raises:
        ValidationError: delta is zero or not an integer
        NotFoundError: product missing, or inactive for an OUT movement
        InsufficientStockError: OUT would drive on-hand below zero
    """
    if isinstance(delta, bool) or not isinstance(delta, int) or delta == 0:
        raise ValidationError("Movement quantity must be a non-zero integer")

    if product is None:
        product = _load_product(product_id, lock=True)
    if product is None:
        raise NotFoundError("Product not found", details={"productId": product_id})

    if delta < 0:
        if not product.is_active:
            raise NotFoundError("Product not found", details={"productId": product_id})
        if product.stock_qty + delta < 0:
            raise InsufficientStockError(
                f"Insufficient stock: {product.name}",
                details={
                    "productId": product.id,
                    "productName": product.name,
                    "onHand": product.stock_qty,
                    "requested": -delta,
                },
            )

    product.stock_qty = product.stock_qty + delta

    movement = StockMovement(
        product_id=product.id,
        type=MOVEMENT_IN if delta > 0 else MOVEMENT_OUT,
        qty=abs(delta),
        reason=reason,
        ref_id=ref_id,
        unit_cost=unit_cost,
        note=note,
        user_id=actor,
        date=utcnow(),
    )
    db.session.add(movement)
    db.session.flush()

    return product.stock_qty


def receive_stock(
    product_id: int,
    qty: int,
    *,
    unit_cost: int | None = None,
    note: str | None = None,
    actor: int | None = None,
) -> Product:
    """
    Record incoming stock (the add-stock operation) and commit.

    Inactive products may still be restocked; only selling them is refused.
    """
    if isinstance(qty, bool) or not isinstance(qty, int) or qty <= 0:
        raise ValidationError("qty must be a positive integer")
    if unit_cost is not None and (isinstance(unit_cost, bool) or not isinstance(unit_cost, int) or unit_cost < 0):
        raise ValidationError("unitCost must be a non-negative integer")

    def _op():
        begin_write()
        product = _load_product(product_id, lock=True)
        if product is None:
            raise NotFoundError("Product not found", details={"productId": product_id})

        apply_movement(
            product.id,
            qty,
            REASON_STOCK_IN,
            actor,
            unit_cost=unit_cost,
            note=note,
            product=product,
        )
        db.session.commit()
        log.info("stock_received product_id=%s qty=%s on_hand=%s actor=%s", product.id, qty, product.stock_qty, actor)
        return product

    return run_with_retry(_op)


def list_movements(product_id: int, limit: int | None = None) -> list[StockMovement]:
    """Ledger history for a product, newest first."""
    if _load_product(product_id) is None:
        raise NotFoundError("Product not found", details={"productId": product_id})

    query = (
        db.session.query(StockMovement)
        .filter_by(product_id=product_id)
        .order_by(StockMovement.date.desc(), StockMovement.id.desc())
    )
    if limit:
        query = query.limit(limit)
    return query.all()


def _signed_qty_expr():
    return case((StockMovement.type == MOVEMENT_IN, StockMovement.qty), else_=-StockMovement.qty)


def ledger_balance(product_id: int) -> int:
    """On-hand quantity as reconstructed from the movement ledger."""
    total = (
        db.session.query(func.coalesce(func.sum(_signed_qty_expr()), 0))
        .filter(StockMovement.product_id == product_id)
        .scalar()
    )
    return int(total or 0)


def reconcile(product_id: int | None = None) -> list[dict]:
    """
    Compare every product's counter with its ledger.

    Returns one entry per product whose counter and ledger disagree; an
    empty list means the ledger invariant holds.
    """
    balances = dict(
        db.session.query(StockMovement.product_id, func.sum(_signed_qty_expr()))
        .group_by(StockMovement.product_id)
        .all()
    )

    query = db.session.query(Product)
    if product_id is not None:
        query = query.filter(Product.id == product_id)

    mismatches = []
    for product in query.order_by(Product.id).all():
        ledger = int(balances.get(product.id) or 0)
        if ledger != product.stock_qty:
            mismatches.append({
                "productId": product.id,
                "productName": product.name,
                "stockQty": product.stock_qty,
                "ledgerQty": ledger,
            })
    return mismatches
