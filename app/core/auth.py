# app/core/auth.py
import uuid
from typing import Any

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from sqlmodel import Session

from app.core.config import get_settings
from app.core.policy import Identity
from app.database import get_session
from app.repositories.profile_repo import ProfileRepository

settings = get_settings()

# HTTP Bearer scheme:
# - auto_error=False => missing Authorization header will NOT raise immediately
#   so anonymous callers reach the policy engine (public image reads).
bearer_scheme = HTTPBearer(auto_error=False)

profile_repo = ProfileRepository()


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Decode and verify a Supabase access token (JWT).

    Verification:
      - signature (HS256 using SUPABASE_JWT_SECRET)
      - expiration time (exp)
      - audience is NOT verified (Supabase 'aud' may vary)

    Args:
        token: raw JWT from the Authorization header.

    Returns:
        Decoded JWT claims.

    Raises:
        HTTPException(401): if token is invalid/expired.
    """
    try:
        return jwt.decode(
            token,
            settings.SUPABASE_JWT_SECRET,
            algorithms=[settings.SUPABASE_JWT_ALG],
            options={"verify_aud": False},
        )
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )


def get_current_identity(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    session: Session = Depends(get_session),
) -> Identity:
    """
    Resolve the caller's identity from a Supabase JWT.

    Flow:
      1. If no Authorization header => anonymous => return None.
      2. Decode JWT => extract 'sub' (auth user id) and optional 'email'
         (phone-OTP sign-ins carry no email).
      3. Convert 'sub' to UUID to match Profile.id type.
      4. Ensure the profile row exists (idempotent upsert, role='user').

    Role claims in the token are ignored; roles are only ever read from
    the profiles table by the policy engine.

    Raises:
        HTTPException(401): if token is malformed or missing 'sub'.
    """
    if credentials is None:
        return None  # anonymous

    payload = decode_access_token(credentials.credentials)
    sub = payload.get("sub")
    email = payload.get("email") or None

    if not sub:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token missing sub",
        )

    # Supabase provides sub as a string; enforce UUID
    try:
        sub_uuid = uuid.UUID(sub)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid sub in token",
        )

    profile_repo.upsert_default(session, sub_uuid, email)
    return sub_uuid


def require_auth(identity: Identity = Depends(get_current_identity)) -> uuid.UUID:
    """
    Enforce authentication.

    If attached to a route, anonymous callers are rejected with 401.
    Authorization beyond that is the policy engine's job.

    Raises:
        HTTPException(401): if identity is None.
    """
    if identity is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    return identity
