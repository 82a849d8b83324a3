# app/schemas/product.py
import uuid
from datetime import datetime

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field


class ProductCreate(SQLModel):
    """
    Payload for creating a product.

    `category` must name an existing category.
    """

    model_config = ConfigDict(extra="forbid")

    name: str = Field(max_length=120)
    category: str = Field(max_length=50)
    price: float = Field(gt=0)
    description: str
    rating: float = Field(default=4.5, ge=0, le=5)
    badge: str | None = "New"
    color: str = "#2563eb"

    @field_validator("name", "category", "description")
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("field cannot be empty")
        return v


class ProductRead(SQLModel):
    """
    Product representation for clients.
    """

    id: uuid.UUID
    name: str
    category: str
    price: float
    rating: float
    badge: str | None
    description: str | None
    color: str
    image: str | None
    created_at: datetime


class ProductUpdate(SQLModel):
    """
    Partial update payload for products.
    All fields are optional.
    """

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, max_length=120)
    category: str | None = Field(default=None, max_length=50)
    price: float | None = Field(default=None, ge=0)
    description: str | None = None
    rating: float | None = Field(default=None, ge=0, le=5)
    badge: str | None = None
    color: str | None = None

    @field_validator("name", "category", "description")
    @classmethod
    def not_empty(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("field cannot be empty")
        return v
