# backend/agrokasir/services/customers_service.py
from __future__ import annotations

import logging

from sqlalchemy import func, or_

from ..errors import NotFoundError
from ..extensions import db
from ..models import Customer, Sale

log = logging.getLogger(__name__)

CUSTOMER_MUTABLE_FIELDS = {"name", "phone", "address", "notes"}


def list_customers(q: str | None = None) -> list[Customer]:
    query = db.session.query(Customer)
    if q and q.strip():
        needle = q.strip().lower()
        query = query.filter(
            or_(
                func.lower(Customer.name).contains(needle, autoescape=True),
                Customer.phone.contains(needle, autoescape=True),
            )
        )
    return query.order_by(Customer.name.asc(), Customer.id.asc()).all()


def get_customer(customer_id: int) -> Customer:
    customer = db.session.get(Customer, customer_id)
    if customer is None:
        raise NotFoundError("Customer not found", details={"customerId": customer_id})
    return customer


def create_customer(*, patch: dict) -> Customer:
    customer = Customer()
    for k, v in patch.items():
        if k in CUSTOMER_MUTABLE_FIELDS:
            setattr(customer, k, v)
    db.session.add(customer)
    db.session.commit()
    return customer


def update_customer(customer_id: int, *, patch: dict) -> Customer:
    customer = get_customer(customer_id)
    for k, v in patch.items():
        if k in CUSTOMER_MUTABLE_FIELDS:
            setattr(customer, k, v)
    db.session.commit()
    return customer


def delete_customer(customer_id: int) -> None:
    """
    Remove a customer. Their sales stay and become walk-in sales
    (customer_id set to null), so invoices remain intact.
    """
    customer = get_customer(customer_id)
    try:
        detached = (
            db.session.query(Sale)
            .filter(Sale.customer_id == customer.id)
            .update({Sale.customer_id: None}, synchronize_session="fetch")
        )
        db.session.delete(customer)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    log.info("customer_deleted customer_id=%s detached_sales=%s", customer_id, detached)
