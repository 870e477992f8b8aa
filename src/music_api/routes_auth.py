"""
Auth endpoints:
- POST /api/auth/register
- POST /api/auth/login

Both return { token, token_type, user }.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status
from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError

from src.music_api.auth import create_access_token, hash_password, verify_password
from src.music_api.db import get_db_session
from src.music_api.models import Playlist, User
from src.music_api.schemas import AuthLoginRequest, AuthRegisterRequest, AuthTokenResponse, UserResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])

LIKED_SONGS_NAME = "Liked Songs"
_DUPLICATE_USER = "User already exists with that email or username"


@router.post(
    "/register",
    response_model=AuthTokenResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user",
    description="Creates a user with its private Liked Songs playlist and returns a JWT token.",
    operation_id="register_user",
)
def register(req: AuthRegisterRequest) -> AuthTokenResponse:
    """Register a new user."""
    email = str(req.email).lower().strip()
    username = req.username.strip()

    with get_db_session() as db:
        existing = db.execute(
            select(User.id).where(or_(User.email == email, func.lower(User.username) == username.lower()))
        ).first()
        if existing:
            raise HTTPException(status_code=400, detail=_DUPLICATE_USER)

        user = User(
            first_name=req.first_name.strip(),
            last_name=req.last_name.strip(),
            username=username,
            email=email,
            password_hash=hash_password(req.password),
        )
        db.add(user)
        try:
            db.flush()
        except IntegrityError:
            raise HTTPException(status_code=400, detail=_DUPLICATE_USER)

        db.add(
            Playlist(
                name=LIKED_SONGS_NAME,
                description="Songs you liked",
                owner_id=user.id,
                is_public=False,
                is_system=True,
            )
        )
        db.flush()

        logger.info("user_registered: user_id=%s", user.id)
        token = create_access_token(user_id=user.id, username=user.username)
        return AuthTokenResponse(token=token, token_type="bearer", user=UserResponse.model_validate(user))


@router.post(
    "/login",
    response_model=AuthTokenResponse,
    summary="Login",
    description="Validates credentials (email or username) and returns a JWT token.",
    operation_id="login_user",
)
def login(req: AuthLoginRequest) -> AuthTokenResponse:
    """Login an existing user."""
    ident = req.login.strip()

    with get_db_session() as db:
        user = db.execute(
            select(User).where(or_(User.email == ident.lower(), func.lower(User.username) == ident.lower()))
        ).scalars().first()
        if not user or not verify_password(req.password, user.password_hash):
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

        token = create_access_token(user_id=user.id, username=user.username)
        return AuthTokenResponse(token=token, token_type="bearer", user=UserResponse.model_validate(user))
