# app/routers/storage.py
from fastapi import APIRouter, Depends, status
from fastapi.responses import RedirectResponse
from sqlmodel import Session

from app.core.auth import get_current_identity
from app.core.policy import Identity, get_policy_engine
from app.database import get_session
from app.services.storage_service import StorageService

router = APIRouter(prefix="/storage", tags=["Storage"])

service = StorageService(get_policy_engine())


@router.get("/{bucket}/{path:path}")
def read_object(
    bucket: str,
    path: str,
    session: Session = Depends(get_session),
    identity: Identity = Depends(get_current_identity),
):
    """
    Redirect to the public URL of a product image.

    Public, no token needed; objects outside the product image bucket are
    refused.
    """
    url = service.resolve_public_object(session, identity, bucket, path)
    return RedirectResponse(url, status_code=status.HTTP_307_TEMPORARY_REDIRECT)
