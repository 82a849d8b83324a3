# app/routers/profiles.py
import uuid

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from app.core.auth import get_current_identity, require_auth
from app.core.policy import Identity, get_policy_engine
from app.database import get_session
from app.repositories.profile_repo import ProfileRepository
from app.schemas.profile import ProfileCreate, ProfileRead, ProfileUpdate
from app.services.profile_service import ProfileService

router = APIRouter(prefix="/profiles", tags=["Profiles"])

repo = ProfileRepository()
service = ProfileService(repo, get_policy_engine())


# -------- Self profile --------


@router.get("/me", response_model=ProfileRead)
def read_me(
    session: Session = Depends(get_session),
    identity: uuid.UUID = Depends(require_auth),
):
    """
    Return the authenticated caller's profile.

    The role shown here is for display only; every privileged operation
    re-reads it server-side.
    """
    return service.get_me(session, identity)


@router.post("/me", response_model=ProfileRead)
def ensure_me(
    session: Session = Depends(get_session),
    identity: uuid.UUID = Depends(require_auth),
):
    """
    Ensure the caller's profile exists (idempotent).

    Never changes the role of an existing profile.
    """
    return service.ensure_me(session, identity)


# -------- Policy-checked endpoints --------


@router.get("", response_model=list[ProfileRead])
def list_profiles(
    session: Session = Depends(get_session),
    identity: uuid.UUID = Depends(require_auth),
    skip: int = 0,
    limit: int = 50,
):
    """
    List profiles visible to the caller (own row for users, all for admins).
    """
    return service.list_profiles(session, identity, skip, limit)


@router.post(
    "",
    response_model=ProfileRead,
    status_code=status.HTTP_201_CREATED,
)
def create_profile(
    payload: ProfileCreate,
    session: Session = Depends(get_session),
    identity: Identity = Depends(get_current_identity),
):
    """
    Insert a profile row.

    Users may only insert their own row with role 'user'; admins may
    insert any row.
    """
    return service.create_profile(session, identity, payload)


@router.get("/{profile_id}", response_model=ProfileRead)
def get_profile(
    profile_id: uuid.UUID,
    session: Session = Depends(get_session),
    identity: Identity = Depends(get_current_identity),
):
    return service.get_profile(session, identity, profile_id)


@router.patch("/{profile_id}", response_model=ProfileRead)
def update_profile(
    profile_id: uuid.UUID,
    payload: ProfileUpdate,
    session: Session = Depends(get_session),
    identity: Identity = Depends(get_current_identity),
):
    """
    Update a profile's email and/or role.

    Only admins can set role 'admin'; nobody can promote themselves.
    """
    return service.update_profile(session, identity, profile_id, payload)


@router.delete("/{profile_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_profile(
    profile_id: uuid.UUID,
    session: Session = Depends(get_session),
    identity: Identity = Depends(get_current_identity),
):
    """
    Delete a profile and its orders (admin only).
    """
    service.delete_profile(session, identity, profile_id)
    return None
