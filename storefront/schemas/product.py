from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel

from storefront.schemas.category import CategoryResponse


class ProductCreate(BaseModel):
    name: str
    description: Optional[str] = None
    price: Decimal
    stock: int = 0
    image: Optional[str] = None
    is_active: bool = True
    category_id: int


class ProductUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[Decimal] = None
    stock: Optional[int] = None
    image: Optional[str] = None
    is_active: Optional[bool] = None
    category_id: Optional[int] = None


class ProductResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    price: Decimal
    stock: int
    image: Optional[str] = None
    is_active: bool
    category_id: int
    category: Optional[CategoryResponse] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProductPage(BaseModel):
    items: List[ProductResponse]
    total: int


class StockLevel(BaseModel):
    product_id: int
    name: str
    stock: int
    status: str  # out_of_stock | low | normal | sufficient
    price: Decimal
    category: Optional[str] = None
    is_active: bool
