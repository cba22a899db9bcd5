import dataclasses
from datetime import datetime, timezone

import pytest

from bookshop.config import settings
from bookshop.db.catalog import CatalogStore
from bookshop.db.ledger import OrderLedger
from bookshop.db.sqlite import Database
from bookshop.services.cart import CartLine
from bookshop.services.checkout import ShippingInfo
from bookshop.services.revenue import RevenueAggregator
from bookshop.services.storage import KeyValueStore

NOW = datetime(2025, 3, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def test_settings(tmp_path):
    return dataclasses.replace(
        settings,
        db_path=str(tmp_path / "data" / "bookshop.db"),
        state_path=str(tmp_path / "data" / "state.json"),
        export_dir=str(tmp_path / "exports"),
        backup_dir=str(tmp_path / "backups"),
        currency="USD",
        decimals=2,
        tax_rate=0.10,
        report_tz="UTC",
        admin_email="admin@bookshop.com",
        admin_password="admin123",
    )


@pytest.fixture
def db(tmp_path):
    database = Database(str(tmp_path / "shop.db")).open()
    database.init_db()
    yield database
    database.close()


@pytest.fixture
def catalog(db):
    return CatalogStore(db)


@pytest.fixture
def ledger(db):
    return OrderLedger(db, tax_rate=0.10)


@pytest.fixture
def revenue(db):
    return RevenueAggregator(db, tz="UTC", clock=lambda: NOW)


@pytest.fixture
def kv(tmp_path):
    return KeyValueStore(str(tmp_path / "state.json"))


@pytest.fixture
def shipping():
    return ShippingInfo(
        full_name="Jane Reader",
        email="jane@example.com",
        phone="+1 555 0100",
        address="1 Library Lane",
        city="Springfield",
        postal_code="12345",
        country="USA",
    )


def make_book(id_, price, title=None):
    return {"id": id_, "title": title or f"Book {id_}", "author": "Author", "price": price}


def line(product_id, price, quantity, title=None):
    return CartLine(product_id=product_id, title=title or f"Book {product_id}", price=price, quantity=quantity)
