"""Invoice numbers: per-month sequence, never duplicated."""

import threading
from datetime import datetime

import pytest

from agrokasir.services import invoice_service
from agrokasir.services.invoice_service import InvoiceSequenceError


def test_first_number_of_period(app, db_session):
    number = invoice_service.next_invoice_number(datetime(2025, 4, 3, 10, 0))
    assert number == "INV-202504-000001"
    assert invoice_service.current_value("202504") == 1


def test_sequence_increments_within_period(app, db_session):
    now = datetime(2025, 4, 30, 23, 59)
    numbers = [invoice_service.next_invoice_number(now) for _ in range(3)]
    assert numbers == ["INV-202504-000001", "INV-202504-000002", "INV-202504-000003"]


def test_sequence_restarts_each_month(app, db_session):
    invoice_service.next_invoice_number(datetime(2025, 4, 10))
    invoice_service.next_invoice_number(datetime(2025, 4, 11))

    assert invoice_service.next_invoice_number(datetime(2025, 5, 1)) == "INV-202505-000001"
    assert invoice_service.current_value("202504") == 2


def test_prefix_and_width_come_from_config(app, db_session, monkeypatch):
    monkeypatch.setitem(app.config, "INVOICE_PREFIX", "TOKO")
    monkeypatch.setitem(app.config, "INVOICE_SEQUENCE_WIDTH", 4)
    assert invoice_service.next_invoice_number(datetime(2025, 1, 2)) == "TOKO-202501-0001"


def test_invalid_period_rejected(app, db_session):
    with pytest.raises(InvoiceSequenceError):
        invoice_service.next_sequence_value("2025-4")


def test_concurrent_allocation_yields_distinct_numbers(app, db_session):
    now = datetime(2025, 6, 15)
    results = []
    errors = []
    lock = threading.Lock()

    def worker():
        with app.app_context():
            try:
                number = invoice_service.next_invoice_number(now)
            except Exception as exc:  # collected and asserted below
                with lock:
                    errors.append(exc)
                return
            with lock:
                results.append(number)

    threads = [threading.Thread(target=worker) for _ in range(10)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    assert len(results) == 10
    assert len(set(results)) == 10
    assert sorted(results) == [f"INV-202506-{n:06d}" for n in range(1, 11)]
