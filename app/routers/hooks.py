# app/routers/hooks.py
import logging
import secrets

from fastapi import APIRouter, Depends, Header, HTTPException, status
from sqlmodel import Session

from app.core.config import get_settings
from app.core.policy import get_policy_engine
from app.database import get_session
from app.repositories.profile_repo import ProfileRepository
from app.schemas.profile import ProfileRead, UserCreatedHook
from app.services.profile_service import ProfileService

router = APIRouter(prefix="/hooks", tags=["Hooks"])

logger = logging.getLogger(__name__)

service = ProfileService(ProfileRepository(), get_policy_engine())


def verify_hook_secret(x_hook_secret: str | None = Header(default=None)) -> None:
    """
    Check the shared secret sent by the auth provider.

    404 when no AUTH_HOOK_SECRET is configured, so the endpoint does not
    exist for deployments that don't use it.
    """
    expected = get_settings().AUTH_HOOK_SECRET
    if not expected:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")
    if not x_hook_secret or not secrets.compare_digest(x_hook_secret, expected):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid hook secret",
        )


@router.post(
    "/auth/user-created",
    response_model=ProfileRead,
    dependencies=[Depends(verify_hook_secret)],
)
def user_created(
    payload: UserCreatedHook,
    session: Session = Depends(get_session),
):
    """
    Provision the profile of a newly created auth identity.

    Called by the auth provider after inserting into auth.users.
    Idempotent: repeated deliveries return the existing profile unchanged.
    """
    record = payload.record
    logger.info("Provisioning profile for new identity %s", record.id)
    return service.provision(session, record.id, record.email)
