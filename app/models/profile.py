# app/models/profile.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import CheckConstraint
from sqlmodel import SQLModel, Field


class Profile(SQLModel, table=True):
    """
    Application profile, one row per authenticated identity.

    Identity:
      - id: MUST match Supabase auth.users.id (UUID from JWT "sub")

    Role:
      - "user" | "admin"
      - anonymous callers have no row and no token.

    The role column is the only input to admin checks; it is never read
    from token claims.
    """

    __tablename__ = "profiles"
    __table_args__ = (
        CheckConstraint("role in ('user', 'admin')", name="profiles_role_check"),
    )

    id: uuid.UUID = Field(
        primary_key=True,
        index=True,
        description="Matches Supabase auth.users.id",
    )

    # Phone-OTP identities have no email
    email: str | None = Field(
        default=None,
        unique=True,
        index=True,
        description="Email from Supabase auth.users, if any",
    )

    role: str = Field(
        default="user",
        index=True,
        description="Application role: user | admin",
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation timestamp (UTC)",
    )
