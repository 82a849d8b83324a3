# app/services/product_service.py
import logging
import uuid

from fastapi import HTTPException, status
from sqlmodel import Session

from app.core.policy import Identity, Operation, PolicyEngine, Resource
from app.core.storage_utils import (
    StorageError,
    delete_from_storage,
    extract_path_from_public_url,
    generate_object_path,
    upload_to_storage,
)
from app.models.product import Product
from app.repositories.category_repo import CategoryRepository
from app.repositories.product_repo import ProductRepository
from app.schemas.product import ProductCreate, ProductUpdate
from app.services.base import PolicyGuardedService

logger = logging.getLogger(__name__)


# --- Image config ---

MAX_IMAGE_BYTES = 5 * 1024 * 1024  # 5MB per image

ALLOWED_IMAGE_CONTENT_TYPES: dict[str, str] = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
}


class ProductService(PolicyGuardedService):
    """
    Business logic for Product.

    Responsibilities:
      - category name validation (products must point at a real category)
      - image upload/delete orchestration with Supabase Storage
      - every read and write checked by the policy engine, including the
        storage-object rules for the image bucket
    """

    def __init__(
        self,
        repo: ProductRepository,
        category_repo: CategoryRepository,
        policy: PolicyEngine,
    ):
        super().__init__(policy)
        self.repo = repo
        self.category_repo = category_repo

    # ----- Helpers -----

    def _canonical_category(self, session: Session, name: str) -> str:
        """
        Return the stored spelling of a category name.

        Raises:
            HTTPException(400): no such category.
        """
        category = self.category_repo.get_by_name_ci(session, name)
        if category is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Unknown category: {name}",
            )
        return category.name

    @staticmethod
    def _validate_and_get_ext(content_type: str, file_bytes: bytes) -> str:
        if content_type not in ALLOWED_IMAGE_CONTENT_TYPES:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Unsupported image type. Allowed: JPEG, PNG, WEBP.",
            )

        if len(file_bytes) > MAX_IMAGE_BYTES:
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail="Image too large (max 5MB).",
            )

        return ALLOWED_IMAGE_CONTENT_TYPES[content_type]

    def _storage_object(self, path: str) -> dict[str, str]:
        return {"bucket_id": self.policy.bucket, "name": path}

    def _remove_image(self, session: Session, identity: Identity, url: str) -> None:
        """
        Best-effort removal of a product image from Storage.

        URLs outside the product image bucket are left alone.
        """
        path = extract_path_from_public_url(url)
        if not path:
            return
        self._enforce(
            session, identity, Resource.PRODUCT_IMAGE, Operation.DELETE,
            self._storage_object(path),
        )
        try:
            delete_from_storage(path)
        except StorageError as e:
            logger.warning("Could not remove product image %s: %s", path, e)

    # ----- Products -----

    def list_products(
        self,
        session: Session,
        identity: Identity,
        skip: int = 0,
        limit: int = 50,
        category: str | None = None,
        search: str | None = None,
    ) -> list[Product]:
        self._enforce(session, identity, Resource.PRODUCT, Operation.SELECT)
        search = search.strip() if search else None
        return self.repo.list(
            session, skip=skip, limit=limit, category=category, search=search
        )

    def get_product(
        self,
        session: Session,
        identity: Identity,
        product_id: uuid.UUID,
    ) -> Product:
        product = self.repo.get_by_id(session, product_id)
        if not product:
            raise self._not_found("Product")
        self._enforce(session, identity, Resource.PRODUCT, Operation.SELECT, product)
        return product

    def create_product(
        self,
        session: Session,
        identity: Identity,
        payload: ProductCreate,
    ) -> Product:
        self._enforce(session, identity, Resource.PRODUCT, Operation.INSERT, payload)

        product = Product(
            name=payload.name,
            category=self._canonical_category(session, payload.category),
            price=payload.price,
            rating=payload.rating,
            badge=payload.badge,
            description=payload.description,
            color=payload.color,
        )
        return self.repo.create(session, product)

    def update_product(
        self,
        session: Session,
        identity: Identity,
        product_id: uuid.UUID,
        payload: ProductUpdate,
    ) -> Product:
        """
        Partial update of a product.
        """
        product = self.get_product(session, identity, product_id)
        self._enforce(session, identity, Resource.PRODUCT, Operation.UPDATE, product)

        changes = payload.model_dump(exclude_unset=True)
        if changes.get("category") is not None:
            changes["category"] = self._canonical_category(session, changes["category"])

        for field, value in changes.items():
            if value is None and field not in ("badge", "description"):
                continue
            setattr(product, field, value)

        return self.repo.update(session, product)

    def delete_product(
        self,
        session: Session,
        identity: Identity,
        product_id: uuid.UUID,
    ) -> None:
        """
        Delete a product and clean up its image in Storage.
        """
        product = self.repo.get_by_id(session, product_id)
        if not product:
            raise self._not_found("Product")
        self._enforce(session, identity, Resource.PRODUCT, Operation.DELETE, product)

        if product.image:
            self._remove_image(session, identity, product.image)

        self.repo.delete(session, product)

    # ----- Image -----

    def set_image(
        self,
        session: Session,
        identity: Identity,
        product_id: uuid.UUID,
        content_type: str,
        file_bytes: bytes,
    ) -> Product:
        """
        Upload or replace the product image.

        - Validates content type + size.
        - Uploads to a fresh path in the product image bucket.
        - Removes the previous image from Storage if present.
        """
        product = self.get_product(session, identity, product_id)
        self._enforce(session, identity, Resource.PRODUCT, Operation.UPDATE, product)
        ext = self._validate_and_get_ext(content_type, file_bytes)

        path = generate_object_path(product.id, ext)
        self._enforce(
            session, identity, Resource.PRODUCT_IMAGE, Operation.INSERT,
            self._storage_object(path),
        )

        old_url = product.image
        product.image = upload_to_storage(path, file_bytes, content_type)
        product = self.repo.update(session, product)

        if old_url:
            self._remove_image(session, identity, old_url)

        return product
