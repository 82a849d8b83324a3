# app/models/order.py
import uuid
from datetime import datetime, date, timezone

from sqlalchemy import CheckConstraint
from sqlmodel import SQLModel, Field


class Order(SQLModel, table=True):
    """
    Customer order.

    There is no line-item table: `total` and `items_count` are supplied
    by the caller when the order is placed and are never recomputed.
    """

    __tablename__ = "orders"
    __table_args__ = (
        CheckConstraint(
            "status in ('Placed', 'Processing', 'Shipped', 'Delivered', 'Cancelled')",
            name="orders_status_check",
        ),
    )

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    user_id: uuid.UUID = Field(
        foreign_key="profiles.id",
        ondelete="CASCADE",
        index=True,
    )

    # Placed | Processing | Shipped | Delivered | Cancelled
    status: str = Field(
        default="Placed",
        index=True,
        description="Order status",
    )

    order_date: date = Field(
        default_factory=date.today,
        description="Date the order was placed",
    )

    total: float = Field(
        ge=0,
        description="Order total as supplied at checkout",
    )

    items_count: int = Field(
        ge=0,
        description="Number of units in the order",
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        index=True,
        description="Creation timestamp (UTC)",
    )
