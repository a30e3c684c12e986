# Overview: Service-layer operations for invoice numbering; encapsulates business logic and database work.

"""
Invoice Numbering Service

Format: <prefix>-<YYYYMM>-<sequence>, e.g. INV-202504-000123. The sequence
restarts at 1 every calendar month (UTC) and is zero-padded to
INVOICE_SEQUENCE_WIDTH digits.

The per-period counter behaves like a database sequence (nextval):
- the increment runs on its own connection and commits immediately, so it is
  never rolled back with the sale that asked for it
- the UPDATE takes the counter row's write lock, so concurrent callers are
  serialized and each one reads back its own value
- a sale that fails after allocation leaves a gap; gaps are acceptable,
  duplicates are not

Counting existing sales for the period and adding one is NOT safe under
concurrent requests and is deliberately not offered here.
"""

from __future__ import annotations

from datetime import datetime

from flask import current_app
from sqlalchemy import insert, select, update
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import InvoiceCounter
from agrokasir.time_utils import period_key, utcnow
from .concurrency import run_with_retry


class InvoiceSequenceError(Exception):
    """Raised when the counter cannot produce a number."""
    pass


_counters = InvoiceCounter.__table__


def _increment(conn, period: str) -> int | None:
    result = conn.execute(
        update(_counters)
        .where(_counters.c.period == period)
        .values(last_number=_counters.c.last_number + 1, updated_at=utcnow())
    )
    if not result.rowcount:
        return None
    return conn.execute(
        select(_counters.c.last_number).where(_counters.c.period == period)
    ).scalar_one()


def _allocate(period: str) -> int:
    with db.engine.begin() as conn:
        value = _increment(conn, period)
        if value is not None:
            return value
        conn.execute(insert(_counters).values(period=period, last_number=1, updated_at=utcnow()))
        return 1


def next_sequence_value(period: str) -> int:
    """
    Atomically advance the period's counter and return the new value.

    Commits independently of db.session.
    """
    if not period or len(period) != 6 or not period.isdigit():
        raise InvoiceSequenceError(f"Invalid period key: {period!r}")

    def _op() -> int:
        try:
            return _allocate(period)
        except IntegrityError:
            # Another caller created the period row first
            with db.engine.begin() as conn:
                value = _increment(conn, period)
            if value is None:
                raise InvoiceSequenceError(f"Counter row for {period} vanished")
            return value

    return run_with_retry(_op)


def format_invoice_number(period: str, sequence: int) -> str:
    prefix = current_app.config.get("INVOICE_PREFIX", "INV")
    width = current_app.config.get("INVOICE_SEQUENCE_WIDTH", 6)
    return f"{prefix}-{period}-{sequence:0{width}d}"


def next_invoice_number(now: datetime | None = None) -> str:
    """Allocate the next invoice number for the period containing `now`."""
    period = period_key(now)
    return format_invoice_number(period, next_sequence_value(period))


def current_value(period: str) -> int:
    """Last number handed out for a period (0 if none yet)."""
    row = db.session.query(InvoiceCounter).filter_by(period=period).first()
    return row.last_number if row else 0
