from pydantic import BaseModel, Field
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

# INTEGER column range
MAX_INT = 2**31 - 1

class OrderLineIn(BaseModel):
    product_id: int = Field(gt=0, le=MAX_INT)
    quantity: int = Field(gt=0, le=MAX_INT)
    # advisory only, the resolved store price is what gets persisted
    unit_price: Optional[Decimal] = None

class OrderCreate(BaseModel):
    user_id: Optional[int] = Field(default=None, gt=0, le=MAX_INT)
    items: Optional[List[OrderLineIn]] = None

class StatusUpdate(BaseModel):
    status: Optional[str] = None

class OrderItemRead(BaseModel):
    id: int
    order_id: int
    product_id: int
    product_name: Optional[str] = None
    quantity: int
    unit_price: Decimal
    created_at: datetime
    class Config: from_attributes = True

class OrderRead(BaseModel):
    id: int
    user_id: Optional[int] = None
    username: Optional[str] = None
    total_amount: Decimal
    status: str
    created_at: datetime
    updated_at: datetime
    items: Optional[List[OrderItemRead]] = None
    class Config: from_attributes = True
