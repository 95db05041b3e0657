from decimal import Decimal
from typing import Optional

from sqlalchemy import select

from order_service.db.models import Product
from order_service.db.session import UnitOfWork


def resolve_price(uow: UnitOfWork, product_id: int) -> Optional[Decimal]:
    """Current authoritative price of ``product_id``, or ``None`` if there is no such product."""
    price = uow.session.execute(
        select(Product.price).where(Product.id == product_id)
    ).scalar_one_or_none()
    if price is None:
        return None
    return Decimal(price)
