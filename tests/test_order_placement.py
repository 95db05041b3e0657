from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError

from order_service.core.errors import (
    ConflictingState,
    InvalidInput,
    ReferencedEntityNotFound,
    StoreUnavailable,
)
from order_service.db.models import Order, OrderItem
from order_service.db.session import Store
from order_service.schemas import OrderLineIn
from order_service.services import orders


def test_total_is_sum_of_resolved_prices(store, make_product, line, count_rows):
    p1 = make_product("Keyboard", "29.99")
    p2 = make_product("Mouse", "49.99")

    order = orders.place_order(store, None, [line(p1.id, 2), line(p2.id, 1)])

    assert order.total_amount == Decimal("109.97")
    assert order.status == "pending"
    assert [(i.product_id, i.quantity, i.unit_price) for i in order.items] == [
        (p1.id, 2, Decimal("29.99")),
        (p2.id, 1, Decimal("49.99")),
    ]
    assert count_rows(Order) == 1
    assert count_rows(OrderItem) == 2


def test_total_uses_exact_decimal_arithmetic(store, make_product, line):
    p = make_product("Sticker", "0.10")

    order = orders.place_order(store, None, [line(p.id, 3)])

    # 0.1 * 3 drifts in binary floating point
    assert order.total_amount == Decimal("0.30")


def test_caller_price_hint_is_ignored(store, make_product, line):
    p = make_product("Monitor", "199.00")

    order = orders.place_order(store, None, [line(p.id, 1, unit_price=Decimal("0.01"))])

    assert order.items[0].unit_price == Decimal("199.00")
    assert order.total_amount == Decimal("199.00")


def test_owner_is_recorded(store, make_product, make_user, line):
    user = make_user("bob")
    p = make_product()

    order = orders.place_order(store, user.id, [line(p.id, 1)])

    assert order.user_id == user.id


@pytest.mark.parametrize("lines", [None, []])
def test_empty_lines_fail_before_store_access(store, monkeypatch, count_rows, lines):
    def _no_store():
        raise AssertionError("store must not be touched")
    monkeypatch.setattr(store, "unit_of_work", _no_store)

    with pytest.raises(InvalidInput):
        orders.place_order(store, None, lines)
    monkeypatch.undo()
    assert count_rows(Order) == 0


@pytest.mark.parametrize("quantity", [0, -3, True, 1.5, "2", None])
def test_non_positive_or_non_integer_quantity_rejected(store, make_product, monkeypatch, count_rows, quantity):
    p = make_product()
    bad = OrderLineIn.model_construct(product_id=p.id, quantity=quantity, unit_price=None)
    monkeypatch.setattr(store, "unit_of_work", lambda: pytest.fail("store must not be touched"))

    with pytest.raises(InvalidInput):
        orders.place_order(store, None, [OrderLineIn(product_id=p.id, quantity=1), bad])
    monkeypatch.undo()
    assert count_rows(Order) == 0


@pytest.mark.parametrize("quantity", [2**31, 2**63])
def test_quantity_beyond_the_integer_column_rejected(store, make_product, count_rows, quantity):
    p = make_product()
    bad = OrderLineIn.model_construct(product_id=p.id, quantity=quantity, unit_price=None)

    with pytest.raises(InvalidInput):
        orders.place_order(store, None, [bad])
    assert count_rows(Order) == 0
    assert count_rows(OrderItem) == 0


@pytest.mark.parametrize("product_id", [0, -1, 2**31, 2**63])
def test_product_id_outside_the_integer_column_rejected(store, count_rows, product_id):
    bad = OrderLineIn.model_construct(product_id=product_id, quantity=1, unit_price=None)

    with pytest.raises(InvalidInput):
        orders.place_order(store, None, [bad])
    assert count_rows(Order) == 0


def test_owner_id_beyond_the_integer_column_rejected(store, make_product, line, count_rows):
    p = make_product()

    with pytest.raises(InvalidInput):
        orders.place_order(store, 2**63, [line(p.id, 1)])
    assert count_rows(Order) == 0


def test_unknown_product_leaves_no_trace(store, make_product, line, count_rows):
    p = make_product()

    with pytest.raises(ReferencedEntityNotFound) as info:
        orders.place_order(store, None, [line(p.id, 1), line(404, 1)])

    assert info.value.entity == "product"
    assert info.value.entity_id == 404
    assert count_rows(Order) == 0
    assert count_rows(OrderItem) == 0


def test_unknown_owner_is_rejected(store, make_product, line, count_rows):
    p = make_product()

    with pytest.raises(ReferencedEntityNotFound) as info:
        orders.place_order(store, 77, [line(p.id, 1)])

    assert info.value.entity == "user"
    assert count_rows(Order) == 0


def test_total_beyond_decimal_range_is_rejected(store, make_product, line, count_rows):
    p = make_product("Yacht", "99999999.99")

    with pytest.raises(InvalidInput):
        orders.place_order(store, None, [line(p.id, 2)])

    assert count_rows(Order) == 0
    assert count_rows(OrderItem) == 0


def test_store_failure_mid_transaction_rolls_back(store, make_product, line, monkeypatch, count_rows):
    p1 = make_product("A", "1.00")
    p2 = make_product("B", "2.00")
    real = orders.resolve_price
    calls = []

    def flaky(uow, product_id):
        calls.append(product_id)
        if len(calls) == 2:
            raise OperationalError("SELECT price", {}, Exception("connection reset"))
        return real(uow, product_id)

    monkeypatch.setattr(orders, "resolve_price", flaky)

    with pytest.raises(StoreUnavailable):
        orders.place_order(store, None, [line(p1.id, 1), line(p2.id, 1)])

    assert count_rows(Order) == 0
    assert count_rows(OrderItem) == 0


def test_reference_violation_detected_by_store_rolls_back(store, make_product, line, monkeypatch, count_rows):
    p = make_product()
    # pretend a product exists that the foreign key then refuses
    monkeypatch.setattr(orders, "resolve_price", lambda uow, product_id: Decimal("5.00"))

    with pytest.raises(ConflictingState):
        orders.place_order(store, None, [line(p.id, 1), line(9999, 1)])

    assert count_rows(Order) == 0
    assert count_rows(OrderItem) == 0


def test_unit_of_work_released_on_every_path(store, make_product, line):
    p = make_product()

    orders.place_order(store, None, [line(p.id, 1)])
    with pytest.raises(ReferencedEntityNotFound):
        orders.place_order(store, None, [line(12345, 1)])
    with pytest.raises(InvalidInput):
        orders.place_order(store, None, [])

    assert store.engine.pool.checkedout() == 0


def test_pool_exhaustion_reports_store_unavailable(store, db_url, make_product, line):
    p = make_product()
    tiny = create_engine(
        db_url,
        connect_args={"check_same_thread": False},
        pool_size=1,
        max_overflow=0,
        pool_timeout=0.1,
    )
    busy = Store(tiny)
    held = tiny.connect()
    try:
        with pytest.raises(StoreUnavailable):
            orders.place_order(busy, None, [line(p.id, 1)])
    finally:
        held.close()

    # once the connection is back the same store works again
    assert orders.place_order(busy, None, [line(p.id, 1)]).total_amount == Decimal("9.99")
    tiny.dispose()


def test_unreachable_store_reports_store_unavailable(tmp_path, line):
    broken = Store(create_engine(f"sqlite:///{tmp_path / 'missing' / 'nowhere.db'}"))

    with pytest.raises(StoreUnavailable):
        orders.place_order(broken, None, [line(1, 1)])
