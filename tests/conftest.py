"""
Pytest config.

Settings are read from the environment when `app` is first imported, so the
test environment (in-memory SQLite, dummy Supabase project, known JWT secret)
is pinned here before any test module imports the application.
"""

from __future__ import annotations

import os
import sys
import time
import uuid
from pathlib import Path

import pytest

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SUPABASE_URL"] = "https://test-project.supabase.co"
os.environ["SUPABASE_KEY"] = "test-anon-key"
os.environ["SUPABASE_JWT_SECRET"] = "test-jwt-secret-for-unit-tests-only"
os.environ["PRODUCT_IMAGE_BUCKET"] = "product-images"
os.environ["SEED_CATEGORIES"] = "false"
os.environ.pop("AUTH_HOOK_SECRET", None)


def _ensure_repo_root_on_syspath() -> None:
    repo_root = Path(__file__).resolve().parents[1]
    repo_root_str = str(repo_root)
    if repo_root_str not in sys.path:
        sys.path.insert(0, repo_root_str)


_ensure_repo_root_on_syspath()

from fastapi.testclient import TestClient  # noqa: E402
from jose import jwt  # noqa: E402
from sqlmodel import SQLModel, Session  # noqa: E402

from app.database import engine, get_session  # noqa: E402
from app.main import app  # noqa: E402
from app.models.category import Category  # noqa: E402
from app.models.product import Product  # noqa: E402
from app.models.profile import Profile  # noqa: E402

JWT_SECRET = os.environ["SUPABASE_JWT_SECRET"]
BUCKET = os.environ["PRODUCT_IMAGE_BUCKET"]


def make_token(sub: uuid.UUID | str, email: str | None = None, **claims) -> str:
    payload = {"sub": str(sub), "exp": int(time.time()) + 3600, "aud": "authenticated"}
    if email is not None:
        payload["email"] = email
    payload.update(claims)
    return jwt.encode(payload, JWT_SECRET, algorithm="HS256")


def auth_headers(profile: Profile) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(profile.id, profile.email)}"}


@pytest.fixture
def session():
    SQLModel.metadata.drop_all(engine)
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session


@pytest.fixture
def client(session: Session):
    app.dependency_overrides[get_session] = lambda: session
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def _profile(session: Session, email: str, role: str) -> Profile:
    profile = Profile(id=uuid.uuid4(), email=email, role=role)
    session.add(profile)
    session.commit()
    session.refresh(profile)
    return profile


@pytest.fixture
def user(session: Session) -> Profile:
    return _profile(session, "u1@example.com", "user")


@pytest.fixture
def other_user(session: Session) -> Profile:
    return _profile(session, "u2@example.com", "user")


@pytest.fixture
def admin(session: Session) -> Profile:
    return _profile(session, "a1@example.com", "admin")


@pytest.fixture
def sneakers(session: Session) -> Category:
    category = Category(name="Sneakers")
    session.add(category)
    session.commit()
    session.refresh(category)
    return category


@pytest.fixture
def runner(session: Session, sneakers: Category) -> Product:
    product = Product(
        name="Aero Runner",
        category=sneakers.name,
        price=3499,
        description="Lightweight daily trainer",
    )
    session.add(product)
    session.commit()
    session.refresh(product)
    return product
