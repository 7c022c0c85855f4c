from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel


class OrderLineIn(BaseModel):
    """One order line. Quantity is checked by the order core, not here."""
    product_id: int
    quantity: int


class OrderCreate(BaseModel):
    customer_name: str
    customer_phone: str
    address: str
    remark: Optional[str] = None
    items: List[OrderLineIn]


class OrderStatusUpdate(BaseModel):
    status: str


class OrderItemResponse(BaseModel):
    id: int
    product_id: int
    product_name: str
    product_image: Optional[str] = None
    price: Decimal
    quantity: int
    subtotal: Decimal

    class Config:
        from_attributes = True


class OrderResponse(BaseModel):
    id: int
    order_no: str
    customer_name: str
    customer_phone: str
    address: str
    total_amount: Decimal
    status: str
    remark: Optional[str] = None
    items: List[OrderItemResponse] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class OrderPage(BaseModel):
    items: List[OrderResponse]
    total: int
