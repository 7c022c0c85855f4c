"""Orders: placement, lookup, status updates, deletion."""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from storefront.api.deps import get_order_manager
from storefront.schemas.order import OrderCreate, OrderPage, OrderResponse, OrderStatusUpdate
from storefront.services.order_manager import OrderTransactionManager

router = APIRouter()


@router.post("", response_model=OrderResponse, status_code=201)
def create_order(data: OrderCreate, manager: OrderTransactionManager = Depends(get_order_manager)):
    """All-or-nothing: 409 names the product that lacks stock, 404 the missing product."""
    return manager.create_order(
        customer_name=data.customer_name,
        customer_phone=data.customer_phone,
        address=data.address,
        remark=data.remark,
        lines=data.items,
    )


@router.get("", response_model=OrderPage)
def list_orders(
    page: int = Query(1, ge=1),
    page_size: Optional[int] = Query(None, ge=1),
    manager: OrderTransactionManager = Depends(get_order_manager),
):
    items, total = manager.list_orders(page, page_size)
    return {"items": items, "total": total}


@router.get("/number/{order_no}", response_model=OrderResponse)
def get_order_by_number(order_no: str, manager: OrderTransactionManager = Depends(get_order_manager)):
    return manager.get_order_by_number(order_no)


@router.get("/{order_id}", response_model=OrderResponse)
def get_order(order_id: int, manager: OrderTransactionManager = Depends(get_order_manager)):
    return manager.get_order(order_id)


@router.put("/{order_id}/status", response_model=OrderResponse)
def update_order_status(
    order_id: int,
    data: OrderStatusUpdate,
    manager: OrderTransactionManager = Depends(get_order_manager),
):
    return manager.update_status(order_id, data.status)


@router.delete("/{order_id}")
def delete_order(order_id: int, manager: OrderTransactionManager = Depends(get_order_manager)):
    return {"success": manager.delete_order(order_id), "id": order_id}
