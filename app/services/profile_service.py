# app/services/profile_service.py
import uuid

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from app.core.policy import Identity, Operation, PolicyEngine, Resource
from app.models.profile import Profile
from app.repositories.profile_repo import ProfileRepository
from app.schemas.profile import ProfileCreate, ProfileUpdate
from app.services.base import PolicyGuardedService


class ProfileService(PolicyGuardedService):
    """
    Business logic for Profile.

    Responsibilities:
      - provisioning (idempotent, role always 'user')
      - self-service reads/updates and admin role management
      - every read and write checked by the policy engine
    """

    def __init__(self, repo: ProfileRepository, policy: PolicyEngine):
        super().__init__(policy)
        self.repo = repo

    # ----- Provisioning -----

    def provision(
        self,
        session: Session,
        identity: uuid.UUID,
        email: str | None = None,
    ) -> Profile:
        """
        Ensure a profile exists for a freshly created identity.

        Runs with backend rights (auth hook / token resolution), not as
        the identity itself. Calling it again is a no-op.
        """
        return self.repo.upsert_default(session, identity, email)

    # ----- Self profile -----

    def get_me(self, session: Session, identity: Identity) -> Profile:
        return self.get_profile(session, identity, identity)

    def ensure_me(self, session: Session, identity: uuid.UUID) -> Profile:
        """
        "Make sure my profile exists", as the client calls after sign-in.
        """
        self.provision(session, identity)
        return self.get_me(session, identity)

    # ----- Generic operations -----

    def list_profiles(
        self,
        session: Session,
        identity: Identity,
        skip: int = 0,
        limit: int = 50,
    ) -> list[Profile]:
        """
        Profiles visible to the caller: only their own for users, all for admins.
        """
        rows = self.repo.list(session, skip=skip, limit=limit)
        return self.policy.filter_visible(session, identity, Resource.PROFILE, rows)

    def get_profile(
        self,
        session: Session,
        identity: Identity,
        profile_id: uuid.UUID,
    ) -> Profile:
        profile = self.repo.get_by_id(session, profile_id)
        if not profile:
            raise self._not_found("Profile")
        self._visible(session, identity, Resource.PROFILE, profile, "Profile")
        return profile

    def create_profile(
        self,
        session: Session,
        identity: Identity,
        payload: ProfileCreate,
    ) -> Profile:
        """
        Insert a profile row.

        Self-inserts must carry role 'user'; admins may insert any role
        for any identity.
        """
        profile = Profile(id=payload.id, email=payload.email, role=payload.role)
        self._enforce(session, identity, Resource.PROFILE, Operation.INSERT, profile)

        if self.repo.get_by_id(session, payload.id) is not None:
            raise self._conflict("Profile already exists")
        if payload.email and self.repo.get_by_email(session, payload.email) is not None:
            raise self._conflict("Email already in use")

        try:
            return self.repo.create(session, profile)
        except IntegrityError:
            # Lost a race against a concurrent insert of the same id or email
            session.rollback()
            if self.repo.get_by_id(session, payload.id) is not None:
                raise self._conflict("Profile already exists")
            raise self._conflict("Email already in use")

    def update_profile(
        self,
        session: Session,
        identity: Identity,
        profile_id: uuid.UUID,
        payload: ProfileUpdate,
    ) -> Profile:
        """
        Partial update of email and/or role.

        The row must be visible to the caller, and the row as it will be
        written must pass the update rule: a non-admin can only ever leave
        their own row with role 'user'.
        """
        profile = self.get_profile(session, identity, profile_id)

        new_row = {
            "id": profile.id,
            "email": payload.email if payload.email is not None else profile.email,
            "role": payload.role if payload.role is not None else profile.role,
        }
        self._enforce(session, identity, Resource.PROFILE, Operation.UPDATE, new_row)

        profile.email = new_row["email"]
        profile.role = new_row["role"]
        try:
            return self.repo.update(session, profile)
        except IntegrityError:
            # Unique email index
            session.rollback()
            raise self._conflict("Email already in use")

    def delete_profile(
        self,
        session: Session,
        identity: Identity,
        profile_id: uuid.UUID,
    ) -> None:
        """Delete a profile and its orders (admin only)."""
        profile = self.get_profile(session, identity, profile_id)
        self._enforce(session, identity, Resource.PROFILE, Operation.DELETE, profile)
        self.repo.delete(session, profile)

    @staticmethod
    def _conflict(detail: str) -> HTTPException:
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=detail)
