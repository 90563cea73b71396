"""Reusable FastAPI dependencies."""
from __future__ import annotations

from collections.abc import AsyncGenerator
from datetime import datetime, timezone
from typing import Any, Dict

import jwt
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from .config import get_settings
from .database import get_session
from .enums import Role
from .models import User
from .schemas import TokenData

# Load settings once
settings = get_settings()

TOKEN_COOKIE = "token"

# Bearer header first, session cookie as fallback
bearer_scheme = HTTPBearer(auto_error=False)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Dependency that yields an AsyncSession."""
    async for session in get_session():
        yield session


def _unauthorized(detail: str = "Not authorized to access this route") -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


def extract_token(request: Request, credentials: HTTPAuthorizationCredentials | None) -> str | None:
    """Return the raw token from the Authorization header or the cookie."""

    if credentials is not None and credentials.scheme.lower() == "bearer":
        return credentials.credentials
    return request.cookies.get(TOKEN_COOKIE)


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    session: AsyncSession = Depends(get_db_session),
) -> User:
    """
    Return the authenticated user from a JWT access token taken from the
    Authorization: Bearer <token> header or the ``token`` cookie.
    """

    token = extract_token(request, credentials)
    if not token:
        raise _unauthorized()

    try:
        token_data = decode_access_token(token)
    except (jwt.PyJWTError, PydanticValidationError) as exc:
        raise _unauthorized() from exc

    user = await session.get(User, token_data.id)
    if user is None or not getattr(user, "is_active", True):
        raise _unauthorized()

    return user


def require_admin(user: User) -> None:
    """Ensure the current user has the admin role."""

    if getattr(user, "role", Role.EMPLOYEE.value) != Role.ADMIN.value:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized as admin",
        )


async def get_admin_user(current_user: User = Depends(get_current_user)) -> User:
    """Authenticated user that also holds the admin role."""

    require_admin(current_user)
    return current_user


def decode_access_token(token: str) -> TokenData:
    """Decode a JWT access token and return its payload."""

    payload: Dict[str, Any] = jwt.decode(
        token,
        settings.secret_key,
        algorithms=["HS256"],
    )
    return TokenData(**payload)


def token_payload(user: User) -> dict[str, Any]:
    """
    Generate the JWT payload for a given user.

    The caller adds "exp" on top of this.
    """
    return {
        "id": user.id,
        "role": user.role,
        "email": user.email,
        "iat": int(datetime.now(timezone.utc).timestamp()),
    }
