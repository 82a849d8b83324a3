# app/services/category_service.py
import uuid

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from app.core.policy import Identity, Operation, PolicyEngine, Resource
from app.models.category import Category
from app.repositories.category_repo import CategoryRepository
from app.repositories.product_repo import ProductRepository
from app.schemas.category import CategoryCreate
from app.services.base import PolicyGuardedService


class CategoryService(PolicyGuardedService):
    """
    Business logic for Category.

    Rules on top of the policy engine:
      - names are unique ignoring case ("bags" clashes with "Bags")
      - a category used by any product cannot be deleted
      - renaming a category carries its products along
    """

    def __init__(
        self,
        repo: CategoryRepository,
        product_repo: ProductRepository,
        policy: PolicyEngine,
    ):
        super().__init__(policy)
        self.repo = repo
        self.product_repo = product_repo

    @staticmethod
    def _duplicate() -> HTTPException:
        return HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Category already exists.",
        )

    def list_categories(self, session: Session, identity: Identity) -> list[Category]:
        self._enforce(session, identity, Resource.CATEGORY, Operation.SELECT)
        return self.repo.list(session)

    def get_category(
        self,
        session: Session,
        identity: Identity,
        category_id: uuid.UUID,
    ) -> Category:
        category = self.repo.get_by_id(session, category_id)
        if not category:
            raise self._not_found("Category")
        self._enforce(session, identity, Resource.CATEGORY, Operation.SELECT, category)
        return category

    def create_category(
        self,
        session: Session,
        identity: Identity,
        payload: CategoryCreate,
    ) -> Category:
        category = Category(name=payload.name)
        self._enforce(session, identity, Resource.CATEGORY, Operation.INSERT, category)

        if self.repo.get_by_name_ci(session, payload.name) is not None:
            raise self._duplicate()

        try:
            return self.repo.create(session, category)
        except IntegrityError:
            # Lost a race against a concurrent insert of the same name
            session.rollback()
            raise self._duplicate()

    def rename_category(
        self,
        session: Session,
        identity: Identity,
        category_id: uuid.UUID,
        payload: CategoryCreate,
    ) -> Category:
        category = self.get_category(session, identity, category_id)
        self._enforce(session, identity, Resource.CATEGORY, Operation.UPDATE, category)

        if payload.name == category.name:
            return category

        clash = self.repo.get_by_name_ci(session, payload.name)
        if clash is not None and clash.id != category.id:
            raise self._duplicate()

        self.product_repo.rename_category(session, category.name, payload.name)
        category.name = payload.name
        try:
            return self.repo.update(session, category)
        except IntegrityError:
            session.rollback()
            raise self._duplicate()

    def delete_category(
        self,
        session: Session,
        identity: Identity,
        category_id: uuid.UUID,
    ) -> None:
        """
        Delete a category that no product uses.

        Raises:
            HTTPException(409): products still reference the category name.
        """
        category = self.repo.get_by_id(session, category_id)
        if not category:
            raise self._not_found("Category")
        self._enforce(session, identity, Resource.CATEGORY, Operation.DELETE, category)

        if self.product_repo.count_in_category(session, category.name) > 0:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Cannot delete a category that is used by existing products.",
            )

        self.repo.delete(session, category)
