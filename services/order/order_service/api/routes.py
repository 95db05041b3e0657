from fastapi import APIRouter, Depends
from typing import List
from order_service.api.deps import get_store
from order_service.db.session import Store
from order_service.schemas import OrderCreate, OrderRead, StatusUpdate
from order_service.services import orders

router = APIRouter()

@router.get("/v1/orders", response_model=List[OrderRead], response_model_exclude={"__all__": {"items"}})
def list_orders(store: Store = Depends(get_store)):
    return orders.list_orders(store)

@router.get("/v1/orders/{order_id}", response_model=OrderRead)
def get_order(order_id: int, store: Store = Depends(get_store)):
    return orders.get_order(store, order_id)

@router.post("/v1/orders", response_model=OrderRead, status_code=201)
def create_order(payload: OrderCreate, store: Store = Depends(get_store)):
    return orders.place_order(store, payload.user_id, payload.items)

@router.patch("/v1/orders/{order_id}/status", response_model=OrderRead, response_model_exclude={"items"})
def update_order_status(order_id: int, payload: StatusUpdate, store: Store = Depends(get_store)):
    return orders.set_status(store, order_id, payload.status)
