from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import Integer,String,Text,DateTime,Numeric,CheckConstraint
from datetime import datetime
from decimal import Decimal
from product_service.db.session import Base

class Product(Base):
    __tablename__='products'
    __table_args__=(CheckConstraint('price >= 0', name='ck_products_price_non_negative'),)
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, default='')
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    stock_quantity: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(), default=lambda: datetime.utcnow())
    updated_at: Mapped[datetime] = mapped_column(DateTime(), default=lambda: datetime.utcnow())
