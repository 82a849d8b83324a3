# app/models/product.py
import uuid
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class Product(SQLModel, table=True):
    """
    Product catalog entry for the storefront.

    `category` holds a category *name*; there is no foreign key.
    """

    __tablename__ = "products"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    name: str = Field(
        max_length=120,
        index=True,
        description="Display name of the product",
    )

    category: str = Field(
        index=True,
        description="Name of an existing category (by convention)",
    )

    price: float = Field(
        ge=0,
        description="Unit price (INR)",
    )

    rating: float = Field(
        default=4.5,
        ge=0,
        le=5,
    )

    badge: str | None = Field(default="New")

    description: str | None = Field(
        default=None,
        description="Short product description",
    )

    # Card accent colour shown when there is no image
    color: str = Field(default="#2563eb")

    image: str | None = Field(
        default=None,
        description="Public URL in the product image bucket",
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation timestamp (UTC)",
    )
