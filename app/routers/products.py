# app/routers/products.py
import uuid

from fastapi import (
    APIRouter,
    Depends,
    File,
    HTTPException,
    UploadFile,
    status,
)
from sqlmodel import Session

from app.core.auth import get_current_identity
from app.core.policy import Identity, get_policy_engine
from app.database import get_session
from app.repositories.category_repo import CategoryRepository
from app.repositories.product_repo import ProductRepository
from app.schemas.product import ProductCreate, ProductRead, ProductUpdate
from app.services.product_service import ProductService

router = APIRouter(prefix="/products", tags=["Products"])

repo = ProductRepository()
category_repo = CategoryRepository()
service = ProductService(repo, category_repo, get_policy_engine())


# -------- Catalog --------


@router.get("", response_model=list[ProductRead])
def list_products(
    session: Session = Depends(get_session),
    identity: Identity = Depends(get_current_identity),
    skip: int = 0,
    limit: int = 50,
    category: str | None = None,
    q: str | None = None,
):
    """
    List products, newest first (any signed-in caller).

    - `category` filters by exact category name.
    - `q` searches name and category, case-insensitive.
    """
    return service.list_products(
        session, identity, skip=skip, limit=limit, category=category, search=q
    )


@router.get("/{product_id}", response_model=ProductRead)
def get_product(
    product_id: uuid.UUID,
    session: Session = Depends(get_session),
    identity: Identity = Depends(get_current_identity),
):
    return service.get_product(session, identity, product_id)


# -------- Admin endpoints --------


@router.post(
    "",
    response_model=ProductRead,
    status_code=status.HTTP_201_CREATED,
)
def create_product(
    payload: ProductCreate,
    session: Session = Depends(get_session),
    identity: Identity = Depends(get_current_identity),
):
    """
    Create a new product (admin only).
    """
    return service.create_product(session, identity, payload)


@router.patch("/{product_id}", response_model=ProductRead)
def update_product(
    product_id: uuid.UUID,
    payload: ProductUpdate,
    session: Session = Depends(get_session),
    identity: Identity = Depends(get_current_identity),
):
    """
    Update an existing product (admin only).
    """
    return service.update_product(session, identity, product_id, payload)


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_product(
    product_id: uuid.UUID,
    session: Session = Depends(get_session),
    identity: Identity = Depends(get_current_identity),
):
    """
    Delete a product and its image (admin only).
    """
    service.delete_product(session, identity, product_id)
    return None


@router.post(
    "/{product_id}/image",
    response_model=ProductRead,
    summary="Upload or replace the image of a product",
)
def upload_image(
    product_id: uuid.UUID,
    file: UploadFile = File(...),
    session: Session = Depends(get_session),
    identity: Identity = Depends(get_current_identity),
):
    """
    Upload a new image for the product (admin only).

    - Accepts JPEG, PNG, WEBP up to 5MB.
    - Stored in the configured product image bucket.
    """
    if not file.content_type:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing content-type for uploaded file",
        )

    file_bytes = file.file.read()
    return service.set_image(
        session=session,
        identity=identity,
        product_id=product_id,
        content_type=file.content_type,
        file_bytes=file_bytes,
    )
