import re
from decimal import Decimal

import pytest

from storefront.core.exceptions import (
    InsufficientStockError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from storefront.models import Order, OrderItem, Product
from storefront.schemas.order import OrderLineIn
from storefront.schemas.product import ProductUpdate
from storefront.services import catalog_service
from storefront.services.order_manager import OrderTransactionManager
from storefront.services.order_number import OrderNumberGenerator

from helpers import count_rows, stock_of


class SequenceNumbers(OrderNumberGenerator):
    """Hands out a fixed sequence of order numbers."""

    def __init__(self, *numbers):
        super().__init__()
        self._numbers = iter(numbers)

    def next(self):
        return next(self._numbers)


def place(manager, *lines, **customer):
    fields = {"customer_name": "Ada Lovelace", "customer_phone": "555-0100", "address": "12 Analytical Row"}
    fields.update(customer)
    return manager.create_order(lines=[OrderLineIn(product_id=p, quantity=q) for p, q in lines], **fields)


def test_create_order_persists_order_items_and_totals(db, session_factory, catalog):
    order = place(OrderTransactionManager(db), (catalog["tea"], 2), (catalog["coffee"], 3), remark="leave at door")

    assert order.id is not None
    assert re.fullmatch(r"ORD\d{17}", order.order_no)
    assert order.status == "pending"
    assert order.remark == "leave at door"
    assert [(i.product_name, i.quantity) for i in order.items] == [("Green Tea", 2), ("Cold Brew", 3)]
    assert [i.subtotal for i in order.items] == [Decimal("25.00"), Decimal("59.97")]
    assert order.total_amount == Decimal("84.97")
    assert sum(i.subtotal for i in order.items) == order.total_amount

    assert stock_of(session_factory, catalog["tea"]) == 8
    assert stock_of(session_factory, catalog["coffee"]) == 2
    assert stock_of(session_factory, catalog["chips"]) == 0
    assert count_rows(session_factory, OrderItem) == 2


def test_same_product_on_two_lines_decrements_twice(db, session_factory, catalog):
    order = place(OrderTransactionManager(db), (catalog["tea"], 3), (catalog["tea"], 4))

    assert order.total_amount == Decimal("87.50")
    assert stock_of(session_factory, catalog["tea"]) == 3


def test_create_order_rejects_empty_lines(db, session_factory, catalog):
    with pytest.raises(ValidationError):
        place(OrderTransactionManager(db))
    assert count_rows(session_factory, Order) == 0


@pytest.mark.parametrize("quantity", [0, -2])
def test_create_order_rejects_non_positive_quantity_before_touching_stock(db, session_factory, catalog, quantity):
    with pytest.raises(ValidationError):
        place(OrderTransactionManager(db), (catalog["tea"], 1), (catalog["coffee"], quantity))

    assert stock_of(session_factory, catalog["tea"]) == 10
    assert count_rows(session_factory, Order) == 0


@pytest.mark.parametrize("field", ["customer_name", "customer_phone", "address"])
def test_create_order_requires_customer_fields(db, catalog, field):
    with pytest.raises(ValidationError) as excinfo:
        place(OrderTransactionManager(db), (catalog["tea"], 1), **{field: "   "})
    assert excinfo.value.field == field


def test_missing_product_rolls_back_earlier_lines(db, session_factory, catalog):
    with pytest.raises(NotFoundError) as excinfo:
        place(OrderTransactionManager(db), (catalog["tea"], 2), (9999, 1))

    assert "9999" in excinfo.value.message
    assert stock_of(session_factory, catalog["tea"]) == 10
    assert count_rows(session_factory, Order) == 0
    assert count_rows(session_factory, OrderItem) == 0


def test_insufficient_stock_rolls_back_earlier_lines(db, session_factory, catalog):
    with pytest.raises(InsufficientStockError) as excinfo:
        place(OrderTransactionManager(db), (catalog["tea"], 2), (catalog["coffee"], 1), (catalog["chips"], 1))

    assert excinfo.value.product_id == catalog["chips"]
    assert stock_of(session_factory, catalog["tea"]) == 10
    assert stock_of(session_factory, catalog["coffee"]) == 5
    assert count_rows(session_factory, Order) == 0


def test_order_items_keep_snapshot_after_product_changes(db, catalog):
    manager = OrderTransactionManager(db)
    order = place(manager, (catalog["tea"], 1))

    catalog_service.update_product(
        db, catalog["tea"], ProductUpdate(name="Matcha", price=Decimal("30.00"))
    )
    catalog_service.delete_product(db, catalog["tea"])

    reloaded = manager.get_order(order.id)
    assert reloaded.items[0].product_id == catalog["tea"]
    assert reloaded.items[0].product_name == "Green Tea"
    assert reloaded.items[0].price == Decimal("12.50")
    assert db.get(Product, catalog["tea"]) is None


def test_order_number_clash_is_regenerated_once(db, session_factory, catalog):
    manager = OrderTransactionManager(db, numbers=SequenceNumbers("ORD-A", "ORD-A", "ORD-B"))
    first = place(manager, (catalog["tea"], 1))
    second = place(manager, (catalog["tea"], 1))

    assert first.order_no == "ORD-A"
    assert second.order_no == "ORD-B"
    assert stock_of(session_factory, catalog["tea"]) == 8


def test_repeated_order_number_clash_fails_without_side_effects(db, session_factory, catalog):
    manager = OrderTransactionManager(db, numbers=SequenceNumbers("ORD-A", "ORD-A", "ORD-A"))
    place(manager, (catalog["tea"], 1))

    with pytest.raises(PersistenceError):
        place(manager, (catalog["coffee"], 2))

    assert stock_of(session_factory, catalog["coffee"]) == 5
    assert count_rows(session_factory, Order) == 1


def test_update_status(db, catalog):
    manager = OrderTransactionManager(db)
    order = place(manager, (catalog["tea"], 1))

    updated = manager.update_status(order.id, "shipped")
    assert updated.status == "shipped"
    assert manager.get_order(order.id).status == "shipped"


def test_update_status_allows_any_known_token(db, catalog):
    manager = OrderTransactionManager(db)
    order = place(manager, (catalog["tea"], 1))

    manager.update_status(order.id, "delivered")
    assert manager.update_status(order.id, "pending").status == "pending"


def test_update_status_rejects_unknown_token(db, catalog):
    manager = OrderTransactionManager(db)
    order = place(manager, (catalog["tea"], 1))

    with pytest.raises(ValidationError):
        manager.update_status(order.id, "bogus")
    assert manager.get_order(order.id).status == "pending"


def test_update_status_missing_order(db):
    with pytest.raises(NotFoundError):
        OrderTransactionManager(db).update_status(9999, "shipped")


def test_lookup_by_number(db, catalog):
    manager = OrderTransactionManager(db)
    order = place(manager, (catalog["coffee"], 1))

    found = manager.get_order_by_number(order.order_no)
    assert found.id == order.id
    assert len(found.items) == 1
    with pytest.raises(NotFoundError):
        manager.get_order_by_number("ORD0000")


def test_list_orders_newest_first_with_total(db, catalog):
    manager = OrderTransactionManager(db)
    ids = [place(manager, (catalog["tea"], 1)).id for _ in range(3)]

    page, total = manager.list_orders(page=1, page_size=2)
    assert total == 3
    assert [o.id for o in page] == [ids[2], ids[1]]

    page, total = manager.list_orders(page=2, page_size=2)
    assert [o.id for o in page] == [ids[0]]


def test_delete_order_removes_items_but_keeps_stock_consumed(db, session_factory, catalog):
    manager = OrderTransactionManager(db)
    order = place(manager, (catalog["tea"], 2), (catalog["coffee"], 1))

    assert manager.delete_order(order.id) is True

    assert count_rows(session_factory, Order) == 0
    assert count_rows(session_factory, OrderItem) == 0
    assert stock_of(session_factory, catalog["tea"]) == 8
    with pytest.raises(NotFoundError):
        manager.delete_order(order.id)
