import json
import random

import pytest

from bookshop.constants import CART_STORAGE_KEY
from bookshop.services.cart import Cart, CartLine
from bookshop.services.storage import KeyValueStore

from conftest import make_book


class TestAddLine:
    def test_new_line_snapshots_price(self):
        cart = Cart()
        book = make_book(1, 12.5)
        cart.add_line(book, 2)
        book["price"] = 99.0
        assert cart.lines == [CartLine(product_id=1, title="Book 1", price=12.5, quantity=2, author="Author")]

    def test_same_product_merges_quantity(self):
        cart = Cart()
        cart.add_line(make_book(1, 10.0))
        cart.add_line(make_book(1, 10.0), 3)
        assert cart.line_count() == 1
        assert cart.lines[0].quantity == 4

    @pytest.mark.parametrize("qty", [0, -1, 1.5, True])
    def test_rejects_bad_quantity(self, qty):
        cart = Cart()
        assert cart.add_line(make_book(1, 10.0), qty) is False
        assert cart.is_empty()


class TestSetQuantityAndRemove:
    def test_set_quantity_verbatim(self):
        cart = Cart()
        cart.add_line(make_book(1, 10.0))
        cart.set_quantity(1, 7)
        assert cart.lines[0].quantity == 7

    @pytest.mark.parametrize("qty", [0, -3])
    def test_non_positive_quantity_removes_line(self, qty):
        cart = Cart()
        cart.add_line(make_book(1, 10.0))
        cart.add_line(make_book(2, 5.0))
        cart.set_quantity(1, qty)
        assert [l.product_id for l in cart.lines] == [2]

    def test_set_quantity_unknown_product_is_noop(self):
        cart = Cart()
        cart.set_quantity(42, 3)
        assert cart.is_empty()

    @pytest.mark.parametrize("qty", [None, "2", 1.5, True])
    def test_set_quantity_rejects_non_integers(self, qty):
        cart = Cart()
        cart.add_line(make_book(1, 10.0), 2)
        with pytest.raises(ValueError):
            cart.set_quantity(1, qty)
        assert cart.lines[0].quantity == 2

    def test_remove_is_idempotent(self):
        cart = Cart()
        cart.add_line(make_book(1, 10.0))
        cart.remove_line(1)
        cart.remove_line(1)
        assert cart.is_empty()

    def test_clear(self):
        cart = Cart()
        cart.add_line(make_book(1, 10.0))
        cart.add_line(make_book(2, 10.0))
        cart.clear()
        assert cart.line_count() == 0
        assert cart.unit_count() == 0

    def test_random_operations_keep_invariants(self):
        rnd = random.Random(7)
        cart = Cart()
        for _ in range(500):
            pid = rnd.randint(1, 6)
            op = rnd.choice(["add", "set", "remove"])
            if op == "add":
                cart.add_line(make_book(pid, 3.0), rnd.randint(-2, 4))
            elif op == "set":
                cart.set_quantity(pid, rnd.randint(-2, 5))
            else:
                cart.remove_line(pid)
            ids = [l.product_id for l in cart.lines]
            assert len(ids) == len(set(ids))
            assert all(l.quantity >= 1 for l in cart.lines)


class TestTotals:
    def test_empty_cart_totals_are_zero(self):
        cart = Cart()
        assert cart.subtotal() == 0
        assert cart.tax() == 0
        assert cart.total() == 0

    def test_subtotal_tax_total(self):
        cart = Cart()
        cart.add_line(make_book(1, 10.0), 2)
        cart.add_line(make_book(2, 5.0), 1)
        assert cart.subtotal() == pytest.approx(25.0)
        assert cart.tax() == pytest.approx(2.5)
        assert cart.total() == pytest.approx(27.5)
        assert cart.total() == pytest.approx(cart.subtotal() * 1.1)

    def test_custom_rate(self):
        cart = Cart()
        cart.add_line(make_book(1, 100.0))
        assert cart.tax(0.2) == pytest.approx(20.0)
        assert cart.total(0.0) == pytest.approx(100.0)

    def test_no_rounding_during_accumulation(self):
        cart = Cart()
        for i in range(1, 4):
            cart.add_line(make_book(i, 0.333), 1)
        assert cart.subtotal() == pytest.approx(0.999)

    def test_line_count_vs_unit_count(self):
        cart = Cart()
        cart.add_line(make_book(1, 1.0), 3)
        cart.add_line(make_book(2, 1.0), 2)
        assert cart.line_count() == 2
        assert cart.unit_count() == 5


class TestPersistence:
    def test_round_trip_preserves_lines_and_order(self, kv):
        cart = Cart(storage=kv)
        cart.add_line(make_book(3, 7.0), 1)
        cart.add_line(make_book(1, 10.0), 2)
        cart.add_line(make_book(2, 5.0), 4)

        restored = Cart.load(kv)
        assert restored.lines == cart.lines
        assert [l.product_id for l in restored.lines] == [3, 1, 2]

    def test_absent_value_is_empty_cart(self, kv):
        assert Cart.load(kv).is_empty()

    @pytest.mark.parametrize(
        "raw",
        [
            "not json",
            json.dumps({"a": 1}),
            json.dumps([{"product_id": 1, "title": "x", "price": 1.0, "quantity": 0}]),
            json.dumps([{"product_id": 1}]),
            json.dumps(
                [
                    {"product_id": 1, "title": "x", "price": 1.0, "quantity": 1},
                    {"product_id": 1, "title": "x", "price": 1.0, "quantity": 2},
                ]
            ),
        ],
    )
    def test_corrupt_value_is_empty_cart(self, kv, raw):
        kv.set(CART_STORAGE_KEY, raw)
        assert Cart.load(kv).is_empty()

    def test_unreadable_state_file_is_empty_cart(self, tmp_path):
        path = tmp_path / "state.json"
        path.write_text("{broken", encoding="utf-8")
        assert Cart.load(KeyValueStore(str(path))).is_empty()

    def test_every_change_is_saved(self, kv):
        cart = Cart(storage=kv)
        cart.add_line(make_book(1, 10.0))
        cart.set_quantity(1, 5)
        assert json.loads(kv.get(CART_STORAGE_KEY))[0]["quantity"] == 5
        cart.clear()
        assert json.loads(kv.get(CART_STORAGE_KEY)) == []

    def test_save_failure_does_not_break_cart(self, tmp_path, caplog):
        blocker = tmp_path / "blocker"
        blocker.write_text("", encoding="utf-8")
        cart = Cart(storage=KeyValueStore(str(blocker / "state.json")))
        cart.add_line(make_book(1, 10.0), 2)
        assert cart.unit_count() == 2
        assert "Error saving cart" in caplog.text
