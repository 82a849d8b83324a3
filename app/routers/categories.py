# app/routers/categories.py
import uuid

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from app.core.auth import get_current_identity
from app.core.policy import Identity, get_policy_engine
from app.database import get_session
from app.repositories.category_repo import CategoryRepository
from app.repositories.product_repo import ProductRepository
from app.schemas.category import CategoryCreate, CategoryRead
from app.services.category_service import CategoryService

router = APIRouter(prefix="/categories", tags=["Categories"])

repo = CategoryRepository()
product_repo = ProductRepository()
service = CategoryService(repo, product_repo, get_policy_engine())


@router.get("", response_model=list[CategoryRead])
def list_categories(
    session: Session = Depends(get_session),
    identity: Identity = Depends(get_current_identity),
):
    """
    List categories sorted by name (any signed-in caller).
    """
    return service.list_categories(session, identity)


@router.post(
    "",
    response_model=CategoryRead,
    status_code=status.HTTP_201_CREATED,
)
def create_category(
    payload: CategoryCreate,
    session: Session = Depends(get_session),
    identity: Identity = Depends(get_current_identity),
):
    """
    Create a category (admin only).

    409 if a category with the same name (ignoring case) exists.
    """
    return service.create_category(session, identity, payload)


@router.patch("/{category_id}", response_model=CategoryRead)
def rename_category(
    category_id: uuid.UUID,
    payload: CategoryCreate,
    session: Session = Depends(get_session),
    identity: Identity = Depends(get_current_identity),
):
    """
    Rename a category and its products (admin only).
    """
    return service.rename_category(session, identity, category_id, payload)


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_category(
    category_id: uuid.UUID,
    session: Session = Depends(get_session),
    identity: Identity = Depends(get_current_identity),
):
    """
    Delete a category (admin only).

    409 while any product still uses the category.
    """
    service.delete_category(session, identity, category_id)
    return None
