# app/repositories/product_repo.py
import uuid

from sqlalchemy import func, or_
from sqlmodel import Session, select

from app.models.product import Product


class ProductRepository:
    """
    Data access layer for Product.

    - Pure DB operations (CRUD + queries).
    - No FastAPI, no business logic.
    """

    def get_by_id(self, session: Session, product_id: uuid.UUID) -> Product | None:
        return session.get(Product, product_id)

    def list(
        self,
        session: Session,
        skip: int = 0,
        limit: int = 50,
        category: str | None = None,
        search: str | None = None,
    ) -> list[Product]:
        """
        Newest first. `search` matches name or category, case-insensitive.
        """
        stmt = select(Product)
        if category:
            stmt = stmt.where(Product.category == category)
        if search:
            pattern = f"%{search.lower()}%"
            stmt = stmt.where(
                or_(
                    func.lower(Product.name).like(pattern),
                    func.lower(Product.category).like(pattern),
                )
            )
        stmt = stmt.order_by(Product.created_at.desc()).offset(skip).limit(limit)
        return list(session.exec(stmt).all())

    def count_in_category(self, session: Session, category: str) -> int:
        stmt = select(func.count()).select_from(Product).where(Product.category == category)
        return int(session.exec(stmt).one() or 0)

    def rename_category(self, session: Session, old: str, new: str) -> None:
        """Point products of category `old` at `new`. Caller commits."""
        stmt = select(Product).where(Product.category == old)
        for product in session.exec(stmt).all():
            product.category = new
            session.add(product)

    def create(self, session: Session, product: Product) -> Product:
        session.add(product)
        session.commit()
        session.refresh(product)
        return product

    def update(self, session: Session, product: Product) -> Product:
        session.add(product)
        session.commit()
        session.refresh(product)
        return product

    def delete(self, session: Session, product: Product) -> None:
        session.delete(product)
        session.commit()
