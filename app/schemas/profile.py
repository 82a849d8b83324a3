# app/schemas/profile.py
import uuid
from datetime import datetime
from typing import Literal

from pydantic import EmailStr, ConfigDict
from sqlmodel import SQLModel

# App-level roles. Anonymous callers have no profile, so no role here.
Role = Literal["user", "admin"]


class ProfileRead(SQLModel):
    """Response schema returned to clients."""

    id: uuid.UUID
    email: str | None
    role: Role
    created_at: datetime


class ProfileCreate(SQLModel):
    """
    Payload for inserting a profile row.

    A caller creating their own profile may only ask for role "user";
    admins may create a profile for any identity with any role.
    """

    model_config = ConfigDict(extra="forbid")

    id: uuid.UUID
    email: EmailStr | None = None
    role: Role = "user"


class ProfileUpdate(SQLModel):
    """
    Partial profile update.

    `role` is accepted from everyone; the policy engine rejects any
    non-admin write that would leave a role other than "user".
    """

    model_config = ConfigDict(extra="forbid")

    email: EmailStr | None = None
    role: Role | None = None


class AuthUserRecord(SQLModel):
    """The `record` part of an auth.users insert event; only id and email are used."""

    model_config = ConfigDict(extra="ignore")

    id: uuid.UUID
    email: str | None = None


class UserCreatedHook(SQLModel):
    """
    Body sent by the auth provider when a new identity is created
    (Supabase database webhook on auth.users).
    """

    model_config = ConfigDict(extra="ignore")

    type: str = "INSERT"
    record: AuthUserRecord
