# app/services/order_service.py
import uuid
from datetime import date

from fastapi import HTTPException, status
from sqlmodel import Session

from app.core.policy import Identity, Operation, PolicyEngine, Resource
from app.models.order import Order
from app.repositories.order_repo import OrderRepository
from app.repositories.profile_repo import ProfileRepository
from app.schemas.order import OrderCreate, OrderRead, OrderStatusUpdate
from app.services.base import PolicyGuardedService


class OrderService(PolicyGuardedService):
    """
    Business logic for orders.

    Responsibilities:
      - place orders for the caller (or, for admins, on someone's behalf)
      - order history: own orders for users, every order for admins
      - admin status changes and deletion
    """

    def __init__(
        self,
        order_repo: OrderRepository,
        profile_repo: ProfileRepository,
        policy: PolicyEngine,
    ):
        super().__init__(policy)
        self.order_repo = order_repo
        self.profile_repo = profile_repo

    # -------- Helpers --------

    @staticmethod
    def _build_order_dto(order: Order, user_email: str | None) -> OrderRead:
        return OrderRead.model_validate(
            order, from_attributes=True, update={"user_email": user_email}
        )

    def _with_emails(self, session: Session, orders: list[Order]) -> list[OrderRead]:
        emails = self.profile_repo.emails_for(session, {o.user_id for o in orders})
        return [self._build_order_dto(o, emails.get(o.user_id)) for o in orders]

    def _get_visible(
        self,
        session: Session,
        identity: Identity,
        order_id: uuid.UUID,
    ) -> Order:
        order = self.order_repo.get_by_id(session, order_id)
        if not order:
            raise self._not_found("Order")
        self._visible(session, identity, Resource.ORDER, order, "Order")
        return order

    # -------- User-facing operations --------

    def place_order(
        self,
        session: Session,
        identity: Identity,
        payload: OrderCreate,
    ) -> OrderRead:
        """
        Create an order with status 'Placed'.

        `total` and `items_count` are stored exactly as supplied.
        """
        order = Order(
            user_id=payload.user_id or identity,
            status="Placed",
            order_date=payload.order_date or date.today(),
            total=payload.total,
            items_count=payload.items_count,
        )
        self._enforce(session, identity, Resource.ORDER, Operation.INSERT, order)

        owner = self.profile_repo.get_by_id(session, order.user_id)
        if owner is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Unknown user for order",
            )

        order = self.order_repo.create(session, order)
        return self._build_order_dto(order, owner.email)

    def list_orders(
        self,
        session: Session,
        identity: Identity,
        skip: int = 0,
        limit: int = 50,
    ) -> list[OrderRead]:
        """
        Orders visible to the caller, newest first, with the owner's email.
        """
        if self.policy.resolver.is_admin(session, identity):
            rows = self.order_repo.list_all(session, skip, limit)
        else:
            rows = self.order_repo.list_for_user(session, identity, skip, limit)
        visible = self.policy.filter_visible(session, identity, Resource.ORDER, rows)
        return self._with_emails(session, visible)

    def get_order(
        self,
        session: Session,
        identity: Identity,
        order_id: uuid.UUID,
    ) -> OrderRead:
        order = self._get_visible(session, identity, order_id)
        return self._with_emails(session, [order])[0]

    # -------- Admin operations --------

    def update_status(
        self,
        session: Session,
        identity: Identity,
        order_id: uuid.UUID,
        payload: OrderStatusUpdate,
    ) -> OrderRead:
        """
        Set any status from the allowed set; no transition graph.
        """
        order = self._get_visible(session, identity, order_id)
        self._enforce(session, identity, Resource.ORDER, Operation.UPDATE, order)

        order.status = payload.status
        order = self.order_repo.update(session, order)
        return self._with_emails(session, [order])[0]

    def delete_order(
        self,
        session: Session,
        identity: Identity,
        order_id: uuid.UUID,
    ) -> None:
        order = self._get_visible(session, identity, order_id)
        self._enforce(session, identity, Resource.ORDER, Operation.DELETE, order)
        self.order_repo.delete(session, order)
