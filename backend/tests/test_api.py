"""End-to-end checks of the HTTP surface."""

import pytest

from agrokasir.extensions import db
from agrokasir.models import Sale, User

from conftest import reload


@pytest.fixture
def urea(client, admin_headers):
    resp = client.post("/api/v1/products", json={
        "name": "Urea 50kg",
        "category": "Pupuk",
        "unit": "sak",
        "costPrice": 8000,
        "sellPrice": 10000,
        "stockQty": 10,
        "minStock": 3,
        "expiryDate": "2026-12-31",
    }, headers=admin_headers)
    assert resp.status_code == 201
    return resp.get_json()


class TestProducts:

    def test_create_books_opening_stock(self, client, admin_headers, urea):
        assert urea["stockQty"] == 10
        assert urea["expiryDate"] == "2026-12-31T00:00:00Z"

        resp = client.get(f"/api/v1/products/{urea['id']}/movements", headers=admin_headers)
        movements = resp.get_json()
        assert [(m["type"], m["qty"], m["reason"]) for m in movements] == [("IN", 10, "OpeningStock")]

    @pytest.mark.parametrize("payload, fragment", [
        ({"category": "Benih"}, "category"),
        ({"unit": "ton"}, "unit"),
        ({"sellPrice": -1}, "sellPrice"),
        ({"costPrice": 1.5}, "costPrice"),
        ({"imageUrl": "ftp://example.com/a.png"}, "imageUrl"),
        ({"expiryDate": "soon"}, "expiryDate"),
        ({"sku": "X1"}, "sku"),
    ])
    def test_create_validation(self, client, admin_headers, payload, fragment):
        body = {"name": "Produk", "category": "Obat", "unit": "ml", "costPrice": 1, "sellPrice": 2}
        body.update(payload)
        resp = client.post("/api/v1/products", json=body, headers=admin_headers)
        assert resp.status_code == 400
        assert fragment in resp.get_json()["error"]

    def test_create_requires_fields(self, client, admin_headers):
        resp = client.post("/api/v1/products", json={"name": "Only name"}, headers=admin_headers)
        assert resp.status_code == 400
        assert "Missing required fields" in resp.get_json()["error"]

    def test_stock_not_editable_through_put(self, client, admin_headers, urea):
        resp = client.put(f"/api/v1/products/{urea['id']}", json={"stockQty": 99}, headers=admin_headers)
        assert resp.status_code == 400

        resp = client.put(f"/api/v1/products/{urea['id']}", json={"sellPrice": 11000}, headers=admin_headers)
        assert resp.status_code == 200
        assert resp.get_json()["sellPrice"] == 11000
        assert resp.get_json()["stockQty"] == 10

    def test_search_and_low_stock(self, client, admin_headers, urea):
        client.post("/api/v1/products", json={
            "name": "Fungisida Cair", "category": "Obat", "unit": "liter",
            "costPrice": 1000, "sellPrice": 2000, "stockQty": 2,
        }, headers=admin_headers)

        names = [p["name"] for p in client.get("/api/v1/products?q=UREA", headers=admin_headers).get_json()]
        assert names == ["Urea 50kg"]

        low = client.get("/api/v1/products/low-stock", headers=admin_headers).get_json()
        assert [p["name"] for p in low] == ["Fungisida Cair"]
        assert low[0]["lowStock"] is True

    def test_add_stock(self, client, admin_headers, urea):
        resp = client.post(
            f"/api/v1/products/{urea['id']}/add-stock",
            json={"qty": 5, "unitCost": 7500, "note": "Kiriman"},
            headers=admin_headers,
        )
        assert resp.status_code == 200
        assert resp.get_json()["stockQty"] == 15

        resp = client.post(f"/api/v1/products/{urea['id']}/add-stock", json={"qty": 0}, headers=admin_headers)
        assert resp.status_code == 400

        resp = client.post("/api/v1/products/9999/add-stock", json={"qty": 1}, headers=admin_headers)
        assert resp.status_code == 404

    def test_soft_delete_hides_but_history_resolves(self, client, admin_headers, urea):
        sale = client.post("/api/v1/sales", json={
            "items": [{"productId": urea["id"], "qty": 1}],
        }, headers=admin_headers).get_json()

        resp = client.delete(f"/api/v1/products/{urea['id']}", headers=admin_headers)
        assert resp.status_code == 200

        listed = client.get("/api/v1/products", headers=admin_headers).get_json()
        assert urea["id"] not in [p["id"] for p in listed]

        detail = client.get(f"/api/v1/sales/{sale['id']}/detail", headers=admin_headers).get_json()
        assert detail["items"][0]["productName"] == "Urea 50kg"

        product = client.get(f"/api/v1/products/{urea['id']}", headers=admin_headers).get_json()
        assert product["isActive"] is False

        resp = client.post("/api/v1/sales", json={
            "items": [{"productId": urea["id"], "qty": 1}],
        }, headers=admin_headers)
        assert resp.status_code == 400

    def test_unknown_product_is_404(self, client, admin_headers):
        assert client.get("/api/v1/products/4040", headers=admin_headers).status_code == 404
        assert client.delete("/api/v1/products/4040", headers=admin_headers).status_code == 404


class TestCustomers:

    def test_crud(self, client, admin_headers):
        resp = client.post("/api/v1/customers", json={"name": "Bu Sri", "phone": "0812"}, headers=admin_headers)
        assert resp.status_code == 201
        customer = resp.get_json()

        resp = client.put(f"/api/v1/customers/{customer['id']}", json={"address": "Desa Sukamaju"},
                          headers=admin_headers)
        assert resp.get_json()["address"] == "Desa Sukamaju"

        resp = client.get(f"/api/v1/customers/{customer['id']}", headers=admin_headers)
        assert resp.get_json()["name"] == "Bu Sri"

        resp = client.post("/api/v1/customers", json={"phone": "0812"}, headers=admin_headers)
        assert resp.status_code == 400

    def test_delete_keeps_sales(self, client, admin_headers, urea):
        customer = client.post("/api/v1/customers", json={"name": "Pak Tani"}, headers=admin_headers).get_json()
        sale = client.post("/api/v1/sales", json={
            "customerId": customer["id"],
            "items": [{"productId": urea["id"], "qty": 1}],
        }, headers=admin_headers).get_json()

        resp = client.delete(f"/api/v1/customers/{customer['id']}", headers=admin_headers)
        assert resp.status_code == 200

        kept = reload(Sale, sale["id"])
        assert kept is not None
        assert kept.customer_id is None
        assert client.get(f"/api/v1/customers/{customer['id']}", headers=admin_headers).status_code == 404


class TestSalesAndPayments:

    def test_sale_then_installments(self, client, admin_headers, urea):
        resp = client.post("/api/v1/sales", json={
            "items": [{"productId": urea["id"], "qty": 2, "unitPrice": 1}],
            "amountPaid": 5000,
            "method": "Tunai",
            "note": "Kasbon",
        }, headers=admin_headers)
        assert resp.status_code == 201
        sale = resp.get_json()
        assert sale["grandTotal"] == 20000
        assert sale["paymentStatus"] == "Sebagian"
        assert sale["invoiceNo"].startswith("INV-")
        assert len(sale["items"]) == 1
        assert len(sale["payments"]) == 1

        resp = client.post("/api/v1/payments", json={"saleId": sale["id"], "amount": 20000, "method": "QRIS"},
                           headers=admin_headers)
        assert resp.status_code == 400
        assert resp.get_json()["amountDue"] == 15000

        resp = client.post("/api/v1/payments", json={
            "saleId": sale["id"], "amount": 15000, "method": "Transfer", "refNo": "BCA-1",
        }, headers=admin_headers)
        assert resp.status_code == 201
        body = resp.get_json()
        assert body["refNo"] == "BCA-1"
        assert body["sale"]["paymentStatus"] == "Lunas"

        open_sales = client.get("/api/v1/sales?status=open", headers=admin_headers).get_json()
        assert open_sales == []
        paid_sales = client.get("/api/v1/sales?status=lunas", headers=admin_headers).get_json()
        assert [s["id"] for s in paid_sales] == [sale["id"]]

        summary = client.get(f"/api/v1/payments/sale/{sale['id']}", headers=admin_headers).get_json()
        assert [p["amount"] for p in summary["payments"]] == [5000, 15000]

    def test_insufficient_stock(self, client, admin_headers, urea):
        resp = client.post("/api/v1/sales", json={"items": [{"productId": urea["id"], "qty": 11}]},
                           headers=admin_headers)
        assert resp.status_code == 400
        assert resp.get_json()["productName"] == "Urea 50kg"

    def test_payment_for_missing_sale(self, client, admin_headers):
        resp = client.post("/api/v1/payments", json={"saleId": 31337, "amount": 100, "method": "Tunai"},
                           headers=admin_headers)
        assert resp.status_code == 404

    def test_missing_sale_detail(self, client, admin_headers):
        assert client.get("/api/v1/sales/31337/detail", headers=admin_headers).status_code == 404

    def test_invoice_conflict_is_409(self, client, admin_headers, urea, monkeypatch):
        first = client.post("/api/v1/sales", json={"items": [{"productId": urea["id"], "qty": 1}]},
                            headers=admin_headers).get_json()

        from agrokasir.services import sales_service
        monkeypatch.setattr(sales_service, "next_invoice_number", lambda now=None: first["invoiceNo"])

        resp = client.post("/api/v1/sales", json={"items": [{"productId": urea["id"], "qty": 1}]},
                           headers=admin_headers)
        assert resp.status_code == 409
        assert db.session.query(Sale).count() == 1
        assert reload(Sale, first["id"]).invoice_no == first["invoiceNo"]


class TestReportsApi:

    def test_bad_date_is_400(self, client, admin_headers):
        resp = client.get("/api/v1/reports/sales?from=31-12-2025", headers=admin_headers)
        assert resp.status_code == 400

    def test_total_sales_all_time(self, client, admin_headers, urea):
        client.post("/api/v1/sales", json={"items": [{"productId": urea["id"], "qty": 3}]}, headers=admin_headers)
        data = client.get("/api/v1/reports/total-sales?all=true", headers=admin_headers).get_json()
        assert data["mode"] == "all-time"
        assert data["total"] == 30000


class TestUsersApi:

    def test_create_update_delete(self, client, admin_headers):
        resp = client.post("/api/v1/users", json={
            "username": "kasir1", "password": "rahasia123", "name": "Kasir Satu",
        }, headers=admin_headers)
        assert resp.status_code == 201
        user = resp.get_json()
        assert user["role"] == "VIEWER"

        resp = client.post("/api/v1/users", json={"username": "kasir1", "password": "rahasia123"},
                           headers=admin_headers)
        assert resp.status_code == 409

        resp = client.patch(f"/api/v1/users/{user['id']}", json={"role": "ADMIN"}, headers=admin_headers)
        assert resp.get_json()["role"] == "ADMIN"

        resp = client.patch(f"/api/v1/users/{user['id']}", json={"role": "OWNER"}, headers=admin_headers)
        assert resp.status_code == 400

        resp = client.delete(f"/api/v1/users/{user['id']}", headers=admin_headers)
        assert resp.status_code == 200

    def test_weak_password(self, client, admin_headers):
        resp = client.post("/api/v1/users", json={"username": "x", "password": "short"}, headers=admin_headers)
        assert resp.status_code == 400

    def test_last_admin_cannot_be_demoted(self, client, admin_user, admin_headers):
        resp = client.patch(f"/api/v1/users/{admin_user.id}", json={"role": "VIEWER"}, headers=admin_headers)
        assert resp.status_code == 409
        assert reload(User, admin_user.id).role == "ADMIN"


class TestJsonBodies:

    @pytest.mark.parametrize("method, path", [
        ("post", "/api/v1/auth/login"),
        ("post", "/api/v1/sales"),
        ("post", "/api/v1/payments"),
        ("post", "/api/v1/users"),
        ("patch", "/api/v1/users/{admin_id}"),
        ("post", "/api/v1/products"),
        ("put", "/api/v1/products/{product_id}"),
        ("post", "/api/v1/products/{product_id}/add-stock"),
        ("post", "/api/v1/customers"),
    ])
    @pytest.mark.parametrize("body", [[1, 2], 5, "text"])
    def test_non_object_body_is_400(self, client, admin_user, admin_headers, urea, method, path, body):
        url = path.format(admin_id=admin_user.id, product_id=urea["id"])
        resp = getattr(client, method)(url, json=body, headers=admin_headers)
        assert resp.status_code == 400
        assert resp.get_json() == {"error": "Invalid JSON payload"}

    def test_missing_body_still_reports_fields(self, client, admin_headers):
        resp = client.post("/api/v1/sales", headers=admin_headers)
        assert resp.status_code == 400
        assert resp.get_json()["error"] != "Invalid JSON payload"
