from __future__ import annotations

import uuid

import pytest
from sqlalchemy.exc import OperationalError

import app.routers.products as products_router
import app.services.product_service as product_service
import app.services.storage_service as storage_service
from app.core.storage_utils import StorageError
from app.models.product import Product
from conftest import BUCKET, auth_headers

BASE = "/api/v1/products"
PUBLIC_PREFIX = f"https://test-project.supabase.co/storage/v1/object/public/{BUCKET}/"

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


@pytest.fixture
def fake_storage(monkeypatch):
    calls = {"uploaded": [], "deleted": []}

    def _upload(path, file_bytes, content_type):
        calls["uploaded"].append((path, content_type))
        return PUBLIC_PREFIX + path

    def _delete(path):
        calls["deleted"].append(path)

    monkeypatch.setattr(product_service, "upload_to_storage", _upload)
    monkeypatch.setattr(product_service, "delete_from_storage", _delete)
    return calls


def _payload(**overrides):
    body = {
        "name": "Court Classic",
        "category": "Sneakers",
        "price": 2999,
        "description": "Leather low-top",
    }
    body.update(overrides)
    return body


# ----- Reads -----


def test_anonymous_cannot_browse(client, runner) -> None:
    assert client.get(BASE).status_code == 401
    assert client.get(f"{BASE}/{runner.id}").status_code == 401


def test_signed_in_user_browses_and_searches(client, session, user, runner) -> None:
    session.add(Product(name="Canvas Tote", category="Bags", price=899, description="Cotton"))
    session.commit()

    r = client.get(BASE, headers=auth_headers(user))
    assert r.status_code == 200
    assert {p["name"] for p in r.json()} == {"Aero Runner", "Canvas Tote"}

    r = client.get(BASE, params={"q": "sneak"}, headers=auth_headers(user))
    assert [p["name"] for p in r.json()] == ["Aero Runner"]

    r = client.get(BASE, params={"category": "Bags"}, headers=auth_headers(user))
    assert [p["name"] for p in r.json()] == ["Canvas Tote"]

    r = client.get(f"{BASE}/{runner.id}", headers=auth_headers(user))
    assert r.status_code == 200
    assert r.json()["rating"] == 4.5


def test_missing_product_is_404(client, user) -> None:
    assert client.get(f"{BASE}/{uuid.uuid4()}", headers=auth_headers(user)).status_code == 404


# ----- Writes -----


def test_only_admin_creates_products(client, user, admin, sneakers) -> None:
    r = client.post(BASE, json=_payload(), headers=auth_headers(user))
    assert r.status_code == 403

    r = client.post(BASE, json=_payload(category="sneakers"), headers=auth_headers(admin))
    assert r.status_code == 201
    body = r.json()
    assert body["category"] == "Sneakers"
    assert body["badge"] == "New"
    assert body["image"] is None


def test_unknown_category_rejected(client, admin, sneakers) -> None:
    r = client.post(BASE, json=_payload(category="Hats"), headers=auth_headers(admin))
    assert r.status_code == 400


def test_invalid_price_rejected(client, admin, sneakers) -> None:
    r = client.post(BASE, json=_payload(price=0), headers=auth_headers(admin))
    assert r.status_code == 422


def test_update_and_delete_are_admin_only(client, session, user, admin, runner) -> None:
    r = client.patch(f"{BASE}/{runner.id}", json={"price": 1}, headers=auth_headers(user))
    assert r.status_code == 403

    r = client.patch(f"{BASE}/{runner.id}", json={"price": 3199, "badge": "Sale"}, headers=auth_headers(admin))
    assert r.status_code == 200
    assert r.json()["price"] == 3199
    assert r.json()["badge"] == "Sale"

    assert client.delete(f"{BASE}/{runner.id}", headers=auth_headers(user)).status_code == 403
    assert client.delete(f"{BASE}/{runner.id}", headers=auth_headers(admin)).status_code == 204
    assert session.get(Product, runner.id) is None


# ----- Images -----


def test_admin_uploads_image_into_configured_bucket(client, admin, runner, fake_storage) -> None:
    r = client.post(
        f"{BASE}/{runner.id}/image",
        files={"file": ("runner.png", PNG, "image/png")},
        headers=auth_headers(admin),
    )

    assert r.status_code == 200
    path, content_type = fake_storage["uploaded"][0]
    assert path.startswith(f"products/{runner.id}/") and path.endswith(".png")
    assert content_type == "image/png"
    assert r.json()["image"] == PUBLIC_PREFIX + path


def test_replacing_image_removes_previous_object(client, session, admin, runner, fake_storage) -> None:
    runner.image = PUBLIC_PREFIX + "products/old.png"
    session.add(runner)
    session.commit()

    r = client.post(
        f"{BASE}/{runner.id}/image",
        files={"file": ("runner.webp", PNG, "image/webp")},
        headers=auth_headers(admin),
    )

    assert r.status_code == 200
    assert fake_storage["deleted"] == ["products/old.png"]


def test_user_cannot_upload_image(client, user, runner, fake_storage) -> None:
    r = client.post(
        f"{BASE}/{runner.id}/image",
        files={"file": ("runner.png", PNG, "image/png")},
        headers=auth_headers(user),
    )
    assert r.status_code == 403
    assert fake_storage["uploaded"] == []


def test_unsupported_image_type(client, admin, runner, fake_storage) -> None:
    r = client.post(
        f"{BASE}/{runner.id}/image",
        files={"file": ("runner.gif", b"GIF89a", "image/gif")},
        headers=auth_headers(admin),
    )
    assert r.status_code == 400


def test_oversized_image_rejected(client, admin, runner, fake_storage) -> None:
    too_big = PNG + b"\x00" * product_service.MAX_IMAGE_BYTES
    r = client.post(
        f"{BASE}/{runner.id}/image",
        files={"file": ("runner.png", too_big, "image/png")},
        headers=auth_headers(admin),
    )
    assert r.status_code == 413
    assert fake_storage["uploaded"] == []


def test_delete_product_removes_image(client, session, admin, runner, fake_storage) -> None:
    runner.image = PUBLIC_PREFIX + "products/runner.png"
    session.add(runner)
    session.commit()

    assert client.delete(f"{BASE}/{runner.id}", headers=auth_headers(admin)).status_code == 204
    assert fake_storage["deleted"] == ["products/runner.png"]


def test_storage_failure_is_503(client, admin, runner, monkeypatch) -> None:
    def _broken(path, file_bytes, content_type):
        raise StorageError("bucket unreachable")

    monkeypatch.setattr(product_service, "upload_to_storage", _broken)
    r = client.post(
        f"{BASE}/{runner.id}/image",
        files={"file": ("runner.png", PNG, "image/png")},
        headers=auth_headers(admin),
    )
    assert r.status_code == 503
    assert r.json()["detail"] == "Service temporarily unavailable"


# ----- Public storage reads -----


def test_public_image_read_redirects_anonymous(client, monkeypatch) -> None:
    monkeypatch.setattr(storage_service, "public_url", lambda path: PUBLIC_PREFIX + path)

    r = client.get(f"/api/v1/storage/{BUCKET}/products/a.png", follow_redirects=False)

    assert r.status_code == 307
    assert r.headers["location"] == PUBLIC_PREFIX + "products/a.png"


def test_other_buckets_are_not_readable(client, monkeypatch) -> None:
    monkeypatch.setattr(storage_service, "public_url", lambda path: PUBLIC_PREFIX + path)

    r = client.get("/api/v1/storage/avatars/u1.png", follow_redirects=False)
    assert r.status_code == 403


# ----- Transport failures -----


def test_database_failure_is_503(client, user, monkeypatch) -> None:
    def _down(*args, **kwargs):
        raise OperationalError("SELECT products", {}, Exception("connection reset"))

    monkeypatch.setattr(products_router.service.repo, "list", _down)

    r = client.get(BASE, headers=auth_headers(user))
    assert r.status_code == 503
