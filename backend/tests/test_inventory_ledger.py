"""Stock ledger: counter and movements move together."""

import pytest

from agrokasir.errors import InsufficientStockError, NotFoundError, ValidationError
from agrokasir.extensions import db
from agrokasir.models import Product, StockMovement
from agrokasir.models.inventory import MOVEMENT_IN, MOVEMENT_OUT, REASON_OPENING_STOCK, REASON_STOCK_IN
from agrokasir.services import inventory_service
from agrokasir.services.products_service import delete_product

from conftest import movement_count, reload


class TestOpeningStock:

    def test_opening_stock_is_booked_as_movement(self, make_product):
        product = make_product(stock=12)

        movements = inventory_service.list_movements(product.id)
        assert len(movements) == 1
        assert movements[0].type == MOVEMENT_IN
        assert movements[0].qty == 12
        assert movements[0].reason == REASON_OPENING_STOCK
        assert inventory_service.ledger_balance(product.id) == 12

    def test_zero_opening_stock_writes_no_movement(self, make_product):
        product = make_product(stock=0)
        assert movement_count(product.id) == 0
        assert inventory_service.get_on_hand(product.id) == 0


class TestApplyMovement:

    def test_out_movement_decrements(self, make_product):
        product = make_product(stock=10)

        on_hand = inventory_service.apply_movement(product.id, -4, "Adjustment", ref_id=99)
        db.session.commit()

        assert on_hand == 6
        assert reload(Product, product.id).stock_qty == 6
        last = inventory_service.list_movements(product.id, limit=1)[0]
        assert last.type == MOVEMENT_OUT
        assert last.qty == 4
        assert last.ref_id == 99

    def test_zero_delta_rejected(self, make_product):
        product = make_product(stock=10)
        with pytest.raises(ValidationError):
            inventory_service.apply_movement(product.id, 0, "Adjustment")

    def test_out_beyond_on_hand_rejected_without_side_effects(self, make_product):
        product = make_product(stock=3)

        with pytest.raises(InsufficientStockError) as exc_info:
            inventory_service.apply_movement(product.id, -5, "Adjustment")
        db.session.rollback()

        assert exc_info.value.details["productName"] == product.name
        assert exc_info.value.details["onHand"] == 3
        assert reload(Product, product.id).stock_qty == 3
        assert movement_count(product.id) == 1

    def test_out_on_inactive_product_rejected(self, make_product):
        product = make_product(stock=5)
        delete_product(product.id)

        with pytest.raises(NotFoundError):
            inventory_service.apply_movement(product.id, -1, "Adjustment")
        db.session.rollback()

    def test_missing_product(self, db_session):
        with pytest.raises(NotFoundError):
            inventory_service.apply_movement(12345, 1, "Adjustment")
        with pytest.raises(NotFoundError):
            inventory_service.get_on_hand(12345)


class TestReceiveStock:

    def test_receive_stock_commits_in_movement(self, make_product, admin_user):
        product = make_product(stock=2)

        inventory_service.receive_stock(product.id, 8, unit_cost=7500, note="PO-17", actor=admin_user.id)

        assert reload(Product, product.id).stock_qty == 10
        movement = inventory_service.list_movements(product.id, limit=1)[0]
        assert movement.reason == REASON_STOCK_IN
        assert movement.unit_cost == 7500
        assert movement.note == "PO-17"
        assert movement.user_id == admin_user.id

    def test_receive_stock_on_inactive_product_is_allowed(self, make_product):
        product = make_product(stock=0)
        delete_product(product.id)

        inventory_service.receive_stock(product.id, 3)
        assert reload(Product, product.id).stock_qty == 3

    @pytest.mark.parametrize("qty", [0, -2, 1.5, True])
    def test_receive_stock_rejects_bad_qty(self, make_product, qty):
        product = make_product(stock=0)
        with pytest.raises(ValidationError):
            inventory_service.receive_stock(product.id, qty)


class TestReconcile:

    def test_consistent_ledger_has_no_mismatch(self, make_product):
        a = make_product(name="A", stock=4)
        make_product(name="B", stock=0)
        inventory_service.receive_stock(a.id, 6)
        inventory_service.apply_movement(a.id, -3, "Adjustment")
        db.session.commit()

        assert inventory_service.reconcile() == []
        assert inventory_service.ledger_balance(a.id) == 7

    def test_direct_counter_write_is_reported(self, make_product):
        product = make_product(stock=4)
        db.session.query(Product).filter_by(id=product.id).update({"stock_qty": 9})
        db.session.commit()

        mismatches = inventory_service.reconcile()
        assert mismatches == [{
            "productId": product.id,
            "productName": product.name,
            "stockQty": 9,
            "ledgerQty": 4,
        }]
        assert inventory_service.reconcile(product.id + 1000) == []

    def test_movements_are_listed_newest_first(self, make_product):
        product = make_product(stock=1)
        inventory_service.receive_stock(product.id, 2)
        inventory_service.receive_stock(product.id, 3)

        qtys = [m.qty for m in inventory_service.list_movements(product.id)]
        assert qtys == [3, 2, 1]
        assert db.session.query(StockMovement).count() == 3
