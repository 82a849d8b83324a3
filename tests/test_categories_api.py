from __future__ import annotations

import uuid

from sqlmodel import select

from app.database import DEFAULT_CATEGORIES, seed_categories
from app.models.category import Category
from app.models.product import Product
from conftest import auth_headers

BASE = "/api/v1/categories"


def test_list_requires_signed_in_caller(client, sneakers) -> None:
    assert client.get(BASE).status_code == 401


def test_list_sorted_by_name(client, session, user, sneakers) -> None:
    session.add(Category(name="Bags"))
    session.commit()

    r = client.get(BASE, headers=auth_headers(user))

    assert r.status_code == 200
    assert [c["name"] for c in r.json()] == ["Bags", "Sneakers"]


def test_only_admin_creates(client, user, admin) -> None:
    r = client.post(BASE, json={"name": "Watches"}, headers=auth_headers(user))
    assert r.status_code == 403

    r = client.post(BASE, json={"name": "  Watches  "}, headers=auth_headers(admin))
    assert r.status_code == 201
    assert r.json()["name"] == "Watches"


def test_case_insensitive_duplicate_rejected(client, admin, sneakers) -> None:
    r = client.post(BASE, json={"name": "sneakers"}, headers=auth_headers(admin))
    assert r.status_code == 409
    assert r.json()["detail"] == "Category already exists."


def test_blank_name_rejected(client, admin) -> None:
    r = client.post(BASE, json={"name": "   "}, headers=auth_headers(admin))
    assert r.status_code == 422


def test_delete_referenced_category_is_refused(client, session, admin, sneakers, runner) -> None:
    r = client.delete(f"{BASE}/{sneakers.id}", headers=auth_headers(admin))

    assert r.status_code == 409
    assert "used by existing products" in r.json()["detail"]
    assert session.get(Category, sneakers.id) is not None


def test_delete_unreferenced_category(client, session, user, admin, sneakers) -> None:
    r = client.delete(f"{BASE}/{sneakers.id}", headers=auth_headers(user))
    assert r.status_code == 403

    r = client.delete(f"{BASE}/{sneakers.id}", headers=auth_headers(admin))
    assert r.status_code == 204
    assert session.get(Category, sneakers.id) is None


def test_delete_missing_category_is_404(client, admin) -> None:
    r = client.delete(f"{BASE}/{uuid.uuid4()}", headers=auth_headers(admin))
    assert r.status_code == 404


def test_rename_carries_products(client, session, admin, sneakers, runner) -> None:
    r = client.patch(f"{BASE}/{sneakers.id}", json={"name": "Trainers"}, headers=auth_headers(admin))

    assert r.status_code == 200
    assert r.json()["name"] == "Trainers"
    session.refresh(runner)
    assert runner.category == "Trainers"


def test_rename_into_existing_name_rejected(client, session, admin, sneakers) -> None:
    session.add(Category(name="Bags"))
    session.commit()

    r = client.patch(f"{BASE}/{sneakers.id}", json={"name": "BAGS"}, headers=auth_headers(admin))
    assert r.status_code == 409


def test_seed_categories_is_idempotent(session) -> None:
    from app.database import engine

    assert seed_categories(engine) == len(DEFAULT_CATEGORIES)
    assert seed_categories(engine) == 0

    names = session.exec(select(Category.name)).all()
    assert sorted(names) == sorted(DEFAULT_CATEGORIES)
    assert session.exec(select(Product)).all() == []
