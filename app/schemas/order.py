# app/schemas/order.py
import uuid
from datetime import date, datetime
from typing import Literal, get_args

from pydantic import ConfigDict
from sqlmodel import SQLModel, Field

OrderStatus = Literal["Placed", "Processing", "Shipped", "Delivered", "Cancelled"]
ORDER_STATUSES: tuple[str, ...] = get_args(OrderStatus)


class OrderCreate(SQLModel):
    """
    Payload for placing an order.

    The client computes `total` and `items_count` from its cart; they are
    stored as given.

    Backend derives:
      - user_id from token (admins may set it to place an order for
        another identity)
      - status = 'Placed'
      - order_date = today unless provided
    """

    model_config = ConfigDict(extra="forbid")

    user_id: uuid.UUID | None = None
    total: float = Field(ge=0)
    items_count: int = Field(ge=0)
    order_date: date | None = None


class OrderRead(SQLModel):
    """
    Order view, with the owner's email for the admin order list.
    """

    id: uuid.UUID
    user_id: uuid.UUID
    status: OrderStatus
    order_date: date
    total: float
    items_count: int
    created_at: datetime
    user_email: str | None = None


class OrderStatusUpdate(SQLModel):
    """
    Admin payload to change order status.

    Any status in the set is accepted from any other; there is no
    transition graph.
    """

    model_config = ConfigDict(extra="forbid")

    status: OrderStatus
