# app/repositories/profile_repo.py
import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import delete as sa_delete
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from app.models.order import Order
from app.models.profile import Profile

logger = logging.getLogger(__name__)


class ProfileRepository:
    """
    Data access layer for Profile.

    Responsibilities:
      - Pure DB operations (CRUD + queries)
      - No FastAPI, no HTTP, no policy checks
    """

    # ----- Basic CRUD -----

    def get_by_id(self, session: Session, profile_id: uuid.UUID) -> Profile | None:
        """Return a Profile by primary key, or None if not found."""
        return session.get(Profile, profile_id)

    def get_by_email(self, session: Session, email: str) -> Profile | None:
        """Return a Profile by unique email, or None if not found."""
        stmt = select(Profile).where(Profile.email == email)
        return session.exec(stmt).first()

    def get_role(self, session: Session, profile_id: uuid.UUID) -> str | None:
        """
        Read only the role column for an identity.

        Column select, so it always hits the database: a role granted or
        revoked since the last call is observed.
        """
        stmt = select(Profile.role).where(Profile.id == profile_id)
        return session.exec(stmt).first()

    def list(self, session: Session, skip: int = 0, limit: int = 50) -> list[Profile]:
        """
        Paginated profile listing, oldest first.

        Args:
            skip: offset rows (for paging)
            limit: max number of rows returned
        """
        stmt = select(Profile).order_by(Profile.created_at).offset(skip).limit(limit)
        return list(session.exec(stmt).all())

    def create(self, session: Session, profile: Profile) -> Profile:
        """Insert a new Profile and return the persisted row."""
        session.add(profile)
        session.commit()
        session.refresh(profile)
        return profile

    def update(self, session: Session, profile: Profile) -> Profile:
        """Persist changes to an existing Profile."""
        session.add(profile)
        session.commit()
        session.refresh(profile)
        return profile

    def delete(self, session: Session, profile: Profile) -> None:
        """
        Delete a Profile and, with it, every order it owns.

        Postgres cascades through the FK; the explicit delete keeps the
        same behaviour on SQLite, where FK enforcement is off by default.
        """
        session.exec(sa_delete(Order).where(Order.user_id == profile.id))
        session.delete(profile)
        session.commit()

    # ----- Provisioning -----

    def _insert_default(
        self,
        session: Session,
        profile_id: uuid.UUID,
        email: str | None,
    ) -> None:
        dialect = session.get_bind().dialect.name
        insert = sqlite.insert if dialect == "sqlite" else postgresql.insert

        stmt = (
            insert(Profile)
            .values(
                id=profile_id,
                email=email,
                role="user",
                created_at=datetime.now(timezone.utc),
            )
            .on_conflict_do_nothing(index_elements=["id"])
        )
        session.exec(stmt)
        session.commit()

    def upsert_default(
        self,
        session: Session,
        profile_id: uuid.UUID,
        email: str | None = None,
    ) -> Profile:
        """
        Create the default profile (role='user') for an identity if absent.

        INSERT ... ON CONFLICT (id) DO NOTHING, so concurrent calls for the
        same identity leave exactly one row and never touch an existing
        role or email.

        An email already held by another profile is not copied: the new
        row is created without one rather than failing on the unique
        email index.
        """
        if email is not None:
            holder = self.get_by_email(session, email)
            if holder is not None and holder.id != profile_id:
                logger.warning(
                    "Provisioning %s without email: %s belongs to profile %s",
                    profile_id, email, holder.id,
                )
                email = None

        try:
            self._insert_default(session, profile_id, email)
        except IntegrityError:
            if email is None:
                raise
            # Email claimed between the check and the insert
            session.rollback()
            self._insert_default(session, profile_id, None)

        profile = session.get(Profile, profile_id, populate_existing=True)
        return profile

    def emails_for(
        self,
        session: Session,
        profile_ids: set[uuid.UUID],
    ) -> dict[uuid.UUID, str | None]:
        """Map profile ids to their emails (ids without a profile are omitted)."""
        if not profile_ids:
            return {}
        stmt = select(Profile.id, Profile.email).where(Profile.id.in_(profile_ids))
        return dict(session.exec(stmt).all())
