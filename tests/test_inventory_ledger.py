import pytest

from storefront.core.exceptions import (
    InsufficientStockError,
    NotFoundError,
    ProductNotFoundError,
    ValidationError,
)
from storefront.db.session import atomic
from storefront.services.inventory_ledger import InventoryLedger, stock_status

from helpers import stock_of


def test_try_decrement_reduces_stock(db, session_factory, catalog):
    ledger = InventoryLedger(db)
    with atomic(db):
        product = ledger.try_decrement(catalog["tea"], 4)
        assert product.stock == 6

    assert stock_of(session_factory, catalog["tea"]) == 6


def test_try_decrement_to_exactly_zero(db, session_factory, catalog):
    with atomic(db):
        InventoryLedger(db).try_decrement(catalog["coffee"], 5)

    assert stock_of(session_factory, catalog["coffee"]) == 0


def test_try_decrement_insufficient_stock_leaves_stock_alone(db, session_factory, catalog):
    with pytest.raises(InsufficientStockError) as excinfo:
        with atomic(db):
            InventoryLedger(db).try_decrement(catalog["coffee"], 6)

    assert excinfo.value.product_id == catalog["coffee"]
    assert excinfo.value.requested == 6
    assert excinfo.value.available == 5
    assert "Cold Brew" in excinfo.value.message
    assert stock_of(session_factory, catalog["coffee"]) == 5


def test_try_decrement_missing_product(db):
    with pytest.raises(ProductNotFoundError) as excinfo:
        InventoryLedger(db).try_decrement(424242, 1)

    assert isinstance(excinfo.value, NotFoundError)
    assert "424242" in excinfo.value.message


@pytest.mark.parametrize("quantity", [0, -3])
def test_try_decrement_rejects_non_positive_quantity(db, catalog, quantity):
    with pytest.raises(ValidationError):
        InventoryLedger(db).try_decrement(catalog["tea"], quantity)


def test_decrements_roll_back_with_enclosing_transaction(db, session_factory, catalog):
    ledger = InventoryLedger(db)
    with pytest.raises(InsufficientStockError):
        with atomic(db):
            ledger.try_decrement(catalog["tea"], 3)
            ledger.try_decrement(catalog["coffee"], 99)

    assert stock_of(session_factory, catalog["tea"]) == 10
    assert stock_of(session_factory, catalog["coffee"]) == 5


def test_get_stock(db, catalog):
    ledger = InventoryLedger(db)
    assert ledger.get_stock(catalog["tea"]) == 10
    with pytest.raises(ProductNotFoundError):
        ledger.get_stock(999)


@pytest.mark.parametrize(
    "stock,expected",
    [(0, "out_of_stock"), (-1, "out_of_stock"), (1, "low"), (10, "low"), (11, "normal"), (50, "normal"), (51, "sufficient")],
)
def test_stock_status(stock, expected):
    assert stock_status(stock, low_threshold=10) == expected


def test_stock_report_lowest_first(db, catalog):
    report = InventoryLedger(db).stock_report(low_threshold=5)

    assert [row["name"] for row in report] == ["Sea Salt Chips", "Cold Brew", "Green Tea"]
    assert [row["status"] for row in report] == ["out_of_stock", "low", "normal"]
    assert report[0]["category"] == "Snacks"
