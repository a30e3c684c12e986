"""Report windows and aggregates."""

from datetime import datetime, timedelta

import pytest

from agrokasir.errors import ValidationError
from agrokasir.extensions import db
from agrokasir.models import Product, Sale, StockMovement
from agrokasir.services import inventory_service, reporting_service, sales_service
from agrokasir.time_utils import utcnow


def _backdate_sale(sale_id, when):
    sale = db.session.get(Sale, sale_id)
    sale.date = when
    db.session.commit()


@pytest.fixture
def catalog(make_product):
    urea = make_product(name="Urea", sell_price=10000, cost_price=8000, stock=50)
    obat = make_product(name="Herbisida", sell_price=5000, cost_price=3000, stock=50, category="Obat", unit="liter")
    return urea, obat


def test_sales_report_default_window(catalog):
    urea, obat = catalog
    recent = sales_service.create_sale([{"productId": urea.id, "qty": 1}])
    old = sales_service.create_sale([{"productId": obat.id, "qty": 1}])
    _backdate_sale(old.id, utcnow() - timedelta(days=60))

    report = reporting_service.sales_report()

    assert report["total"] == 10000
    assert [s["id"] for s in report["list"]] == [recent.id]


def test_sales_report_inclusive_day_bounds(catalog):
    urea, _ = catalog
    first = sales_service.create_sale([{"productId": urea.id, "qty": 1}])
    last = sales_service.create_sale([{"productId": urea.id, "qty": 2}])
    outside = sales_service.create_sale([{"productId": urea.id, "qty": 3}])
    _backdate_sale(first.id, datetime(2025, 3, 1, 0, 0, 0))
    _backdate_sale(last.id, datetime(2025, 3, 31, 23, 59, 59))
    _backdate_sale(outside.id, datetime(2025, 4, 1, 0, 0, 0))

    report = reporting_service.sales_report(start="2025-03-01", end="2025-03-31")

    assert report["total"] == 30000
    assert [s["id"] for s in report["list"]] == [last.id, first.id]


@pytest.mark.parametrize("start, end", [("2025-13-01", None), ("yesterday", None), ("2025-03-10", "2025-03-01")])
def test_bad_window_rejected(app, db_session, start, end):
    with pytest.raises(ValidationError):
        reporting_service.sales_report(start=start, end=end)


def test_stock_in_report(catalog):
    urea, obat = catalog
    inventory_service.receive_stock(urea.id, 10, unit_cost=7000, note="Supplier A")
    inventory_service.receive_stock(obat.id, 4)

    report = reporting_service.stock_in_report()

    assert report["totalQty"] == 10 + 4
    assert len(report["list"]) == 2
    assert report["totalValue"] == 70000
    newest = report["list"][0]
    assert newest["productName"] == "Herbisida"
    assert newest["unitCost"] == 0
    assert newest["value"] == 0
    assert report["list"][1]["note"] == "Supplier A"


def test_stock_in_report_lists_receipts_only(catalog):
    urea, _ = catalog
    sales_service.create_sale([{"productId": urea.id, "qty": 5}])
    received = inventory_service.receive_stock(urea.id, 20, unit_cost=7500)

    report = reporting_service.stock_in_report()

    assert db.session.query(StockMovement).count() == 4
    assert [entry["qty"] for entry in report["list"]] == [20]
    assert report["list"][0]["reason"] == "StockIn"
    assert report["list"][0]["productId"] == received.id
    assert report["totalValue"] == 150000


def test_total_sales_range_and_all_time(catalog):
    urea, _ = catalog
    recent = sales_service.create_sale([{"productId": urea.id, "qty": 1}])
    old = sales_service.create_sale([{"productId": urea.id, "qty": 2}])
    _backdate_sale(old.id, datetime(2020, 1, 15, 8, 0))

    ranged = reporting_service.total_sales_report()
    assert ranged["mode"] == "range"
    assert ranged["total"] == 10000
    assert ranged["firstSaleAt"] == ranged["lastSaleAt"]

    all_time = reporting_service.total_sales_report(all_time=True)
    assert all_time["mode"] == "all-time"
    assert all_time["range"] is None
    assert all_time["total"] == 30000
    assert all_time["firstSaleAt"] == "2020-01-15T08:00:00Z"
    assert recent.id != old.id


def test_profit_uses_current_cost_price(catalog):
    urea, obat = catalog
    sales_service.create_sale([
        {"productId": urea.id, "qty": 2},
        {"productId": obat.id, "qty": 3},
    ])

    report = reporting_service.profit_report(all_time=True)
    assert report["revenue"] == 2 * 10000 + 3 * 5000
    assert report["cogs"] == 2 * 8000 + 3 * 3000
    assert report["profit"] == 35000 - 25000
    assert report["dataset"]["saleItems"] == 2
    assert report["dataset"]["productsInvolved"] == 2

    db.session.get(Product, urea.id).cost_price = 9000
    db.session.commit()
    assert reporting_service.profit_report()["cogs"] == 2 * 9000 + 3 * 3000


def test_empty_reports(app, db_session):
    assert reporting_service.sales_report() == {"total": 0, "list": []}
    assert reporting_service.stock_in_report() == {"totalQty": 0, "totalValue": 0, "list": []}
    profit = reporting_service.profit_report()
    assert profit["revenue"] == profit["cogs"] == profit["profit"] == 0
    assert profit["dataset"]["firstSaleAt"] is None


def test_window_with_only_upper_bound(catalog):
    urea, _ = catalog
    old = sales_service.create_sale([{"productId": urea.id, "qty": 2}])
    older = sales_service.create_sale([{"productId": urea.id, "qty": 3}])
    sales_service.create_sale([{"productId": urea.id, "qty": 1}])
    _backdate_sale(old.id, utcnow() - timedelta(days=60))
    _backdate_sale(older.id, utcnow() - timedelta(days=120))
    end = (utcnow() - timedelta(days=45)).date().isoformat()

    report = reporting_service.sales_report(end=end)

    assert report["total"] == 20000
    assert [s["id"] for s in report["list"]] == [old.id]


def test_window_with_only_lower_bound_reaches_today(catalog):
    urea, _ = catalog
    old = sales_service.create_sale([{"productId": urea.id, "qty": 2}])
    recent = sales_service.create_sale([{"productId": urea.id, "qty": 1}])
    _backdate_sale(old.id, utcnow() - timedelta(days=60))
    start = (utcnow() - timedelta(days=90)).date().isoformat()

    report = reporting_service.sales_report(start=start)

    assert report["total"] == 30000
    assert [s["id"] for s in report["list"]] == [recent.id, old.id]
