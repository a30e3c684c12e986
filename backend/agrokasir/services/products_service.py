# backend/agrokasir/services/products_service.py
"""
Products Service

Catalog maintenance. Stock is not an editable attribute here: the opening
quantity of a new product is booked through the inventory ledger, and later
changes go through add-stock or sales.
"""
from __future__ import annotations

import logging

from sqlalchemy import func

from ..errors import NotFoundError
from ..extensions import db
from ..models import Product
from ..models.inventory import REASON_OPENING_STOCK
from .inventory_service import apply_movement

log = logging.getLogger(__name__)

PRODUCT_MUTABLE_FIELDS = {
    "name",
    "category",
    "unit",
    "cost_price",
    "sell_price",
    "expiry_date",
    "image_url",
    "min_stock",
    "is_active",
}


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def list_products(q: str | None = None) -> list[Product]:
    """Active products ordered by name, optionally filtered by a case-insensitive name fragment."""
    query = db.session.query(Product).filter(Product.is_active.is_(True))
    if q and q.strip():
        query = query.filter(func.lower(Product.name).contains(q.strip().lower(), autoescape=True))
    return query.order_by(Product.name.asc(), Product.id.asc()).all()


def list_low_stock() -> list[Product]:
    return (
        db.session.query(Product)
        .filter(Product.is_active.is_(True), Product.stock_qty <= Product.min_stock)
        .order_by(Product.stock_qty.asc(), Product.name.asc())
        .all()
    )


def get_product(product_id: int) -> Product:
    """Fetch a product by id, active or not."""
    product = db.session.get(Product, product_id)
    if product is None:
        raise NotFoundError("Product not found", details={"productId": product_id})
    return product


def create_product(*, patch: dict, actor: int | None = None) -> Product:
    """
    Create a product from a validated patch dict.

    A non-zero stock_qty in the patch becomes an OpeningStock IN movement
    committed together with the product row.
    """
    opening_qty = patch.pop("stock_qty", None) or 0

    product = Product(stock_qty=0, is_active=True)
    apply_product_patch(product, patch)
    db.session.add(product)

    try:
        db.session.flush()
        if opening_qty > 0:
            apply_movement(product.id, opening_qty, REASON_OPENING_STOCK, actor, product=product)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    log.info("product_created product_id=%s opening_qty=%s actor=%s", product.id, opening_qty, actor)
    return product


def update_product(product_id: int, *, patch: dict) -> Product:
    product = get_product(product_id)
    apply_product_patch(product, patch)
    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return product


def delete_product(product_id: int) -> Product:
    """
    Soft delete: the product disappears from listings and cannot be sold,
    but sale items and movements referencing it keep resolving.
    """
    product = get_product(product_id)
    if product.is_active:
        product.is_active = False
        db.session.commit()
        log.info("product_deactivated product_id=%s", product.id)
    return product
