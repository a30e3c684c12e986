# Overview: Service-layer operations for reporting; read-only aggregates over sales and the stock ledger.

"""
Report windows are whole UTC days, both ends inclusive. Without explicit
bounds a report covers the last REPORT_DEFAULT_DAYS days up to today.
total_sales_report and profit_report can also run over all time.

COGS is approximated with each product's current cost_price; historical
purchase prices are not tracked per sale line.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta

from flask import current_app
from sqlalchemy import func

from ..errors import ValidationError
from ..extensions import db
from ..models import Product, Sale, SaleItem, StockMovement
from ..models.inventory import MOVEMENT_IN, REASON_STOCK_IN
from agrokasir.time_utils import day_bounds, default_window, parse_day, to_utc_z


MODE_RANGE = "range"
MODE_ALL_TIME = "all-time"


def _parse_day_arg(name: str, value: str | None) -> date | None:
    try:
        return parse_day(value)
    except ValueError:
        raise ValidationError(f"{name} must be a date in YYYY-MM-DD format")


def resolve_window(
    start: str | None,
    end: str | None,
    *,
    all_time: bool = False,
) -> tuple[date | None, date | None]:
    """
    Turn the from/to query values into an inclusive day window.

    A missing lower bound reaches back the default number of days from the
    upper bound; a missing upper bound is today. Returns (None, None) in
    all-time mode.
    """
    if all_time:
        return None, None

    start_day = _parse_day_arg("from", start)
    end_day = _parse_day_arg("to", end)

    days = current_app.config["REPORT_DEFAULT_DAYS"]
    if start_day is None and end_day is None:
        return default_window(days)
    if end_day is None:
        end_day = max(start_day, default_window(days)[1])
    if start_day is None:
        start_day = end_day - timedelta(days=days)

    if start_day > end_day:
        raise ValidationError("from must not be after to")
    return start_day, end_day


def _range_info(start_day: date | None, end_day: date | None) -> dict:
    if start_day is None:
        return {"mode": MODE_ALL_TIME, "range": None}
    return {
        "mode": MODE_RANGE,
        "range": {"from": start_day.isoformat(), "to": end_day.isoformat()},
    }


def _bounds(start_day: date | None, end_day: date | None) -> tuple[datetime | None, datetime | None]:
    if start_day is None:
        return None, None
    return day_bounds(start_day, end_day)


def sales_report(*, start: str | None = None, end: str | None = None) -> dict:
    """Sales in the window, newest first, with their grand-total sum."""
    start_dt, end_dt = _bounds(*resolve_window(start, end))

    sales = (
        db.session.query(Sale)
        .filter(Sale.date >= start_dt, Sale.date <= end_dt)
        .order_by(Sale.date.desc(), Sale.id.desc())
        .all()
    )
    return {
        "total": sum(s.grand_total for s in sales),
        "list": [s.to_dict() for s in sales],
    }


def stock_in_report(*, start: str | None = None, end: str | None = None) -> dict:
    """Stock receipts in the window, valued at their recorded unit cost (missing cost counts as 0).

    Opening stock and other IN movements are not receipts and are left out.
    """
    start_dt, end_dt = _bounds(*resolve_window(start, end))

    rows = (
        db.session.query(StockMovement, Product.name)
        .join(Product, Product.id == StockMovement.product_id)
        .filter(
            StockMovement.type == MOVEMENT_IN,
            StockMovement.reason == REASON_STOCK_IN,
            StockMovement.date >= start_dt,
            StockMovement.date <= end_dt,
        )
        .order_by(StockMovement.date.desc(), StockMovement.id.desc())
        .all()
    )

    entries = []
    total_qty = 0
    total_value = 0
    for movement, product_name in rows:
        unit_cost = movement.unit_cost or 0
        value = unit_cost * movement.qty
        total_qty += movement.qty
        total_value += value
        entries.append({
            "id": movement.id,
            "date": to_utc_z(movement.date),
            "productId": movement.product_id,
            "productName": product_name,
            "qty": movement.qty,
            "unitCost": unit_cost,
            "value": value,
            "reason": movement.reason,
            "note": movement.note or "",
        })

    return {"totalQty": total_qty, "totalValue": total_value, "list": entries}


def total_sales_report(
    *,
    start: str | None = None,
    end: str | None = None,
    all_time: bool = False,
) -> dict:
    start_day, end_day = resolve_window(start, end, all_time=all_time)
    start_dt, end_dt = _bounds(start_day, end_day)

    query = db.session.query(
        func.coalesce(func.sum(Sale.grand_total), 0),
        func.min(Sale.date),
        func.max(Sale.date),
    )
    if start_dt is not None:
        query = query.filter(Sale.date >= start_dt, Sale.date <= end_dt)
    total, first_at, last_at = query.one()

    result = _range_info(start_day, end_day)
    result.update({
        "total": int(total or 0),
        "firstSaleAt": to_utc_z(first_at),
        "lastSaleAt": to_utc_z(last_at),
    })
    return result


def profit_report(
    *,
    start: str | None = None,
    end: str | None = None,
    all_time: bool = False,
) -> dict:
    """
    Gross profit: revenue (sum of line totals) minus COGS (qty times the
    product's current cost_price).
    """
    start_day, end_day = resolve_window(start, end, all_time=all_time)
    start_dt, end_dt = _bounds(start_day, end_day)

    query = (
        db.session.query(SaleItem.product_id, SaleItem.qty, SaleItem.line_total, Product.cost_price)
        .join(Sale, Sale.id == SaleItem.sale_id)
        .join(Product, Product.id == SaleItem.product_id)
    )
    sale_dates = db.session.query(func.min(Sale.date), func.max(Sale.date))
    if start_dt is not None:
        query = query.filter(Sale.date >= start_dt, Sale.date <= end_dt)
        sale_dates = sale_dates.filter(Sale.date >= start_dt, Sale.date <= end_dt)

    rows = query.all()
    first_at, last_at = sale_dates.one()

    revenue = sum(row.line_total for row in rows)
    cogs = sum(row.qty * (row.cost_price or 0) for row in rows)

    result = _range_info(start_day, end_day)
    result.update({
        "dataset": {
            "firstSaleAt": to_utc_z(first_at),
            "lastSaleAt": to_utc_z(last_at),
            "saleItems": len(rows),
            "productsInvolved": len({row.product_id for row in rows}),
        },
        "revenue": revenue,
        "cogs": cogs,
        "profit": revenue - cogs,
    })
    return result
