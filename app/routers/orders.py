# app/routers/orders.py
import uuid

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from app.core.auth import get_current_identity, require_auth
from app.core.policy import Identity, get_policy_engine
from app.database import get_session
from app.repositories.order_repo import OrderRepository
from app.repositories.profile_repo import ProfileRepository
from app.schemas.order import OrderCreate, OrderRead, OrderStatusUpdate
from app.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["Orders"])

order_repo = OrderRepository()
profile_repo = ProfileRepository()
service = OrderService(order_repo, profile_repo, get_policy_engine())


@router.post(
    "",
    response_model=OrderRead,
    status_code=status.HTTP_201_CREATED,
)
def place_order(
    payload: OrderCreate,
    session: Session = Depends(get_session),
    identity: Identity = Depends(get_current_identity),
):
    """
    Place an order for the caller.

    Admins may pass `user_id` to place an order on someone's behalf.
    """
    return service.place_order(session, identity, payload)


@router.get("", response_model=list[OrderRead])
def list_orders(
    session: Session = Depends(get_session),
    identity: uuid.UUID = Depends(require_auth),
    skip: int = 0,
    limit: int = 50,
):
    """
    Order history: the caller's own orders, or every order for admins.
    """
    return service.list_orders(session, identity, skip, limit)


@router.get("/{order_id}", response_model=OrderRead)
def get_order(
    order_id: uuid.UUID,
    session: Session = Depends(get_session),
    identity: Identity = Depends(get_current_identity),
):
    return service.get_order(session, identity, order_id)


@router.patch("/{order_id}/status", response_model=OrderRead)
def update_order_status(
    order_id: uuid.UUID,
    payload: OrderStatusUpdate,
    session: Session = Depends(get_session),
    identity: Identity = Depends(get_current_identity),
):
    """
    Update order status (admin only).

    Placed, Processing, Shipped, Delivered, Cancelled; any to any.
    """
    return service.update_status(session, identity, order_id, payload)


@router.delete("/{order_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_order(
    order_id: uuid.UUID,
    session: Session = Depends(get_session),
    identity: Identity = Depends(get_current_identity),
):
    """Delete an order (admin only)."""
    service.delete_order(session, identity, order_id)
    return None
