import logging
from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Sequence

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from order_service.core.errors import (
    ConflictingState,
    InvalidInput,
    NotFound,
    ReferencedEntityNotFound,
    StoreUnavailable,
)
from order_service.db.models import Order, OrderItem, OrderStatus, Product, User
from order_service.db.session import Store, UnitOfWork
from order_service.schemas import MAX_INT, OrderItemRead, OrderLineIn, OrderRead
from order_service.services.pricing import resolve_price

logger = logging.getLogger(__name__)

# NUMERIC(10, 2)
MAX_AMOUNT = Decimal("99999999.99")
CENTS = Decimal("0.01")
STATUS_MAX_LENGTH = 20


@contextmanager
def _store_errors(uow: UnitOfWork, action: str):
    try:
        yield
    except IntegrityError as exc:
        uow.rollback()
        logger.warning("%s rejected by the store: %s", action, exc.orig)
        raise ConflictingState(f"Could not {action}: conflicting store state") from exc
    except SQLAlchemyError as exc:
        uow.rollback()
        logger.exception("%s failed", action)
        raise StoreUnavailable(cause=exc) from exc


def _order_read(order: Order, username: Optional[str] = None,
                items: Optional[List[OrderItemRead]] = None) -> OrderRead:
    return OrderRead(
        id=order.id,
        user_id=order.user_id,
        username=username,
        total_amount=order.total_amount,
        status=order.status,
        created_at=order.created_at,
        updated_at=order.updated_at,
        items=items,
    )


def _validate_lines(lines: Optional[Sequence[OrderLineIn]]) -> None:
    if not lines:
        raise InvalidInput("Order items are required")
    for index, line in enumerate(lines):
        qty = line.quantity
        if isinstance(qty, bool) or not isinstance(qty, int) or not 0 < qty <= MAX_INT:
            raise InvalidInput(f"Item {index}: quantity must be an integer between 1 and {MAX_INT}")
        pid = line.product_id
        if isinstance(pid, bool) or not isinstance(pid, int) or not 0 < pid <= MAX_INT:
            raise InvalidInput(f"Item {index}: product_id must be an integer between 1 and {MAX_INT}")


def place_order(store: Store, owner_id: Optional[int], lines: Optional[Sequence[OrderLineIn]]) -> OrderRead:
    _validate_lines(lines)
    if owner_id is not None and (isinstance(owner_id, bool) or not isinstance(owner_id, int) or not 0 < owner_id <= MAX_INT):
        raise InvalidInput(f"user_id must be an integer between 1 and {MAX_INT}")

    with store.unit_of_work() as uow:
        with _store_errors(uow, "place order"):
            if owner_id is not None and uow.session.get(User, owner_id) is None:
                uow.rollback()
                raise ReferencedEntityNotFound("user", owner_id)

            total = Decimal("0.00")
            priced = []
            for line in lines:
                price = resolve_price(uow, line.product_id)
                if price is None:
                    uow.rollback()
                    raise ReferencedEntityNotFound("product", line.product_id)
                total += price * line.quantity
                if total > MAX_AMOUNT:
                    uow.rollback()
                    raise InvalidInput(f"Order total exceeds {MAX_AMOUNT}")
                priced.append((line, price))

            order = Order(
                user_id=owner_id,
                total_amount=total.quantize(CENTS),
                status=OrderStatus.PENDING.value,
            )
            for line, price in priced:
                order.items.append(OrderItem(
                    product_id=line.product_id,
                    quantity=line.quantity,
                    unit_price=price.quantize(CENTS),
                ))
            uow.session.add(order)
            uow.session.flush()

            result = _order_read(order, items=[OrderItemRead.model_validate(it) for it in order.items])
            uow.commit()

    logger.info("placed order %s: %d items, total %s", result.id, len(result.items), result.total_amount)
    return result


def get_order(store: Store, order_id: int) -> OrderRead:
    if not 0 < order_id <= MAX_INT:
        raise NotFound()
    with store.unit_of_work() as uow:
        with _store_errors(uow, "fetch order"):
            row = uow.session.execute(
                select(Order, User.username)
                .outerjoin(User, Order.user_id == User.id)
                .where(Order.id == order_id)
            ).one_or_none()
            if row is None:
                raise NotFound()
            order, username = row

            item_rows = uow.session.execute(
                select(OrderItem, Product.name)
                .outerjoin(Product, OrderItem.product_id == Product.id)
                .where(OrderItem.order_id == order_id)
                .order_by(OrderItem.id)
            ).all()
            items = [
                OrderItemRead.model_validate(item).model_copy(update={"product_name": name})
                for item, name in item_rows
            ]
            return _order_read(order, username=username, items=items)


def list_orders(store: Store) -> List[OrderRead]:
    with store.unit_of_work() as uow:
        with _store_errors(uow, "list orders"):
            rows = uow.session.execute(
                select(Order, User.username)
                .outerjoin(User, Order.user_id == User.id)
                .order_by(Order.created_at.desc(), Order.id.desc())
            ).all()
            return [_order_read(order, username=username) for order, username in rows]


def set_status(store: Store, order_id: int, status: Optional[str]) -> OrderRead:
    if not isinstance(status, str) or not status.strip():
        raise InvalidInput("Status is required")
    if len(status) > STATUS_MAX_LENGTH:
        raise InvalidInput(f"Status must be at most {STATUS_MAX_LENGTH} characters")
    if status not in {s.value for s in OrderStatus}:
        # accepted as-is, unknown values are only reported
        logger.warning("order %s moved to unrecognised status %r", order_id, status)
    if not 0 < order_id <= MAX_INT:
        raise NotFound()

    with store.unit_of_work() as uow:
        with _store_errors(uow, "update order status"):
            result = uow.session.execute(
                update(Order)
                .where(Order.id == order_id)
                .values(status=status, updated_at=datetime.utcnow())
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                uow.rollback()
                raise NotFound()
            order = uow.session.get(Order, order_id)
            updated = _order_read(order)
            uow.commit()

    logger.info("order %s status set to %r", order_id, status)
    return updated
