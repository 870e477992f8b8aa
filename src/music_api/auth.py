"""
Authentication utilities: password hashing, JWT handling and request identity.

Clients send:
- Authorization: Bearer <token>       (users)
- X-API-Key: <key>                    (distributor ingestion)

Handlers receive an `AuthContext` through the dependencies below; nothing about
the caller is stored in shared state.
"""

from __future__ import annotations

import hmac
import uuid
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Any, Dict, Optional

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy import select

from src.music_api.access import AuthContext
from src.music_api.config import get_settings
from src.music_api.db import get_db_session
from src.music_api.models import User

_bearer_scheme = HTTPBearer(auto_error=False)


@lru_cache(maxsize=1)
def _pwd_context() -> CryptContext:
    return CryptContext(
        schemes=["bcrypt"],
        deprecated="auto",
        bcrypt__rounds=get_settings().bcrypt_rounds,
    )


def _jwt_secret() -> str:
    secret = get_settings().jwt_secret
    if not secret:
        raise RuntimeError("JWT_SECRET env var is required.")
    return secret


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


# PUBLIC_INTERFACE
def hash_password(password: str) -> str:
    """Hash a plain-text password."""
    return _pwd_context().hash(password)


# PUBLIC_INTERFACE
def verify_password(password: str, password_hash: str) -> bool:
    """Verify a plain-text password against a hash."""
    return _pwd_context().verify(password, password_hash)


# PUBLIC_INTERFACE
def create_access_token(*, user_id: uuid.UUID, username: str) -> str:
    """
    Issue an HS256 access token for a user.

    Claims: sub (user id as a string), username, iat and exp, with the expiry
    taken from JWT_EXPIRES_MINUTES.
    """
    settings = get_settings()
    now = datetime.now(timezone.utc)
    exp = now + timedelta(minutes=settings.jwt_expires_minutes)
    payload: Dict[str, Any] = {
        "sub": str(user_id),
        "username": username,
        "iat": int(now.timestamp()),
        "exp": int(exp.timestamp()),
    }
    return jwt.encode(payload, _jwt_secret(), algorithm=settings.jwt_algorithm)


def _decode_token(token: str) -> Dict[str, Any]:
    try:
        return jwt.decode(token, _jwt_secret(), algorithms=[get_settings().jwt_algorithm])
    except JWTError:
        raise _unauthorized("Token verification failed, authorization denied")


def _context_from_credentials(credentials: HTTPAuthorizationCredentials) -> AuthContext:
    payload = _decode_token(credentials.credentials)
    sub = payload.get("sub")
    if not sub:
        raise _unauthorized("Token verification failed, authorization denied")

    try:
        user_id = uuid.UUID(str(sub))
    except ValueError:
        raise _unauthorized("Token verification failed, authorization denied")

    with get_db_session() as db:
        user = db.execute(select(User).where(User.id == user_id)).scalar_one_or_none()
        if not user:
            raise _unauthorized("Token verification failed, authorization denied")
        return AuthContext(
            user_id=user.id,
            username=user.username,
            is_admin=user.is_admin,
            is_artist=user.is_artist,
            is_distributor=user.is_distributor,
        )


# PUBLIC_INTERFACE
def get_auth_context(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
) -> AuthContext:
    """
    FastAPI dependency that returns the authenticated caller.

    Raises 401 if the token is missing, invalid or expired, or the user no longer exists.
    """
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise _unauthorized("No authentication token, access denied")
    return _context_from_credentials(credentials)


# PUBLIC_INTERFACE
def get_optional_auth_context(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
) -> Optional[AuthContext]:
    """Like `get_auth_context`, but anonymous callers get None instead of a 401."""
    if credentials is None or credentials.scheme.lower() != "bearer":
        return None
    return _context_from_credentials(credentials)


# PUBLIC_INTERFACE
def require_admin(ctx: AuthContext = Depends(get_auth_context)) -> AuthContext:
    """Dependency that only lets administrators through."""
    if not ctx.is_admin:
        raise HTTPException(status_code=403, detail="Access denied. Admin privileges required.")
    return ctx


# PUBLIC_INTERFACE
def require_distributor_key(x_api_key: Optional[str] = Header(None)) -> None:
    """Guard for the distributor ingestion endpoint (X-API-Key header)."""
    expected = get_settings().distributor_api_key
    if not expected:
        raise HTTPException(status_code=503, detail="Distributor ingestion is not configured.")
    if not x_api_key or not hmac.compare_digest(x_api_key, expected):
        raise HTTPException(status_code=401, detail="Invalid or missing API key.")
