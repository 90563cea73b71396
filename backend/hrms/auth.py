"""Authentication routes and helpers."""
import hashlib
import secrets
from datetime import datetime, timedelta

import jwt
from fastapi import APIRouter, Depends, HTTPException, Response, status
from passlib.context import CryptContext
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from .config import get_settings
from .dependencies import TOKEN_COOKIE, get_admin_user, get_current_user, get_db_session, token_payload
from .exceptions import DuplicateEmail
from .logging_config import get_logger
from .models import User
from .schemas import (
    ForgotPasswordRequest,
    ForgotPasswordResponse,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    PasswordUpdate,
    RegisterResponse,
    ResetPasswordRequest,
    TokenMessage,
    UserCreate,
    UserRead,
    compute_expiry,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

# Use PBKDF2-SHA256 instead of bcrypt to avoid bcrypt backend issues
password_context = CryptContext(
    schemes=["pbkdf2_sha256"],
    deprecated="auto",
)


def hash_password(password: str) -> str:
    """Hash a password for storage."""
    return password_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Check a plain password against the stored hash."""
    return password_context.verify(password, password_hash)


def issue_access_token(user: User) -> str:
    """Sign a JWT for ``user`` using the configured lifetime."""

    settings = get_settings()
    expires_at = compute_expiry(settings.access_token_expires_minutes)
    return jwt.encode(
        {**token_payload(user), "exp": int(expires_at.timestamp())},
        settings.secret_key,
        algorithm="HS256",
    )


def _hash_reset_token(raw: str) -> str:
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()


async def find_user_by_email(session: AsyncSession, email: str) -> User | None:
    result = await session.execute(
        select(User).where(func.lower(User.email) == email.strip().lower())
    )
    return result.scalar_one_or_none()


async def create_user(session: AsyncSession, payload: UserCreate) -> User:
    """Insert a new account; emails are unique regardless of case."""

    if await find_user_by_email(session, payload.email) is not None:
        raise DuplicateEmail()

    user = User(
        name=payload.name,
        email=payload.email.lower(),
        password_hash=hash_password(payload.password),
        role=payload.role.value,
        department=payload.department,
        position=payload.position,
    )
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user


@router.post("/login", response_model=LoginResponse)
async def login(
    payload: LoginRequest,
    response: Response,
    session: AsyncSession = Depends(get_db_session),
) -> LoginResponse:
    """Authenticate a user, return a JWT and set it as an httpOnly cookie."""

    settings = get_settings()
    user = await find_user_by_email(session, payload.email)
    if user is None or not verify_password(payload.password, user.password_hash):
        logger.info("Rejected login for %s", payload.email)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )
    if not user.is_active:
        logger.info("Rejected login for inactive account %s", user.id)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Account is inactive",
        )

    token = issue_access_token(user)
    response.set_cookie(
        TOKEN_COOKIE,
        token,
        max_age=settings.access_token_expires_minutes * 60,
        httponly=True,
        secure=settings.is_production,
        samesite="strict",
    )
    return LoginResponse(token=token, user=UserRead.model_validate(user))


@router.post("/logout", response_model=MessageResponse)
async def logout(response: Response) -> MessageResponse:
    """Clear the session cookie."""

    response.delete_cookie(TOKEN_COOKIE)
    return MessageResponse(message="Logged out")


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
async def register_user(
    payload: UserCreate,
    _admin: User = Depends(get_admin_user),
    session: AsyncSession = Depends(get_db_session),
) -> RegisterResponse:
    """Create an account (admin only) and return a token for it."""

    user = await create_user(session, payload)
    return RegisterResponse(token=issue_access_token(user), user=UserRead.model_validate(user))


@router.get("/me", response_model=UserRead)
async def get_me(current_user: User = Depends(get_current_user)) -> User:
    return current_user


@router.put("/update-password", response_model=TokenMessage)
async def update_password(
    payload: PasswordUpdate,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
) -> TokenMessage:
    if not verify_password(payload.current_password, current_user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Current password is incorrect",
        )

    current_user.password_hash = hash_password(payload.new_password)
    await session.commit()
    return TokenMessage(message="Password updated successfully", token=issue_access_token(current_user))


@router.post("/forgot-password", response_model=ForgotPasswordResponse)
async def forgot_password(
    payload: ForgotPasswordRequest,
    session: AsyncSession = Depends(get_db_session),
) -> ForgotPasswordResponse:
    """Issue a short-lived reset token.

    No mail transport is configured, so the token is returned directly.
    """

    settings = get_settings()
    user = await find_user_by_email(session, payload.email)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    raw_token = secrets.token_hex(20)
    user.password_reset_token = _hash_reset_token(raw_token)
    user.password_reset_expires = datetime.utcnow() + timedelta(
        minutes=settings.password_reset_expires_minutes
    )
    await session.commit()
    return ForgotPasswordResponse(message="Password reset token sent to email", reset_token=raw_token)


@router.put("/reset-password/{reset_token}", response_model=TokenMessage)
async def reset_password(
    reset_token: str,
    payload: ResetPasswordRequest,
    session: AsyncSession = Depends(get_db_session),
) -> TokenMessage:
    result = await session.execute(
        select(User).where(
            User.password_reset_token == _hash_reset_token(reset_token),
            User.password_reset_expires > datetime.utcnow(),
        )
    )
    user = result.scalar_one_or_none()
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid or expired reset token",
        )

    user.password_hash = hash_password(payload.password)
    user.password_reset_token = None
    user.password_reset_expires = None
    await session.commit()
    return TokenMessage(message="Password reset successful", token=issue_access_token(user))
