from pydantic import BaseModel, Field
from datetime import datetime
from decimal import Decimal
from typing import Optional

class ProductCreate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = ''
    price: Optional[Decimal] = Field(default=None, gt=0, max_digits=10, decimal_places=2)
    stock_quantity: Optional[int] = Field(default=0, ge=0)
class ProductUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    stock_quantity: Optional[int] = Field(default=None, ge=0)
class ProductRead(BaseModel):
    id: int
    name: str
    description: Optional[str] = ''
    price: Decimal
    stock_quantity: int
    created_at: datetime
    updated_at: datetime
    class Config: from_attributes = True
