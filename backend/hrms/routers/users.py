"""User profile and account administration endpoints."""
from typing import Sequence

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..auth import create_user, find_user_by_email, update_password
from ..dependencies import get_admin_user, get_current_user, get_db_session
from ..exceptions import DuplicateEmail
from ..logging_config import get_logger
from ..models import User
from ..schemas import MessageResponse, ProfileUpdate, TokenMessage, UserCreate, UserRead, UserUpdate

logger = get_logger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


async def _apply_changes(session: AsyncSession, user: User, payload: ProfileUpdate) -> User:
    """Copy the provided fields onto ``user``; omitted fields are kept."""

    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    email = changes.pop("email", None)
    if email is not None and email.lower() != user.email:
        existing = await find_user_by_email(session, email)
        if existing is not None and existing.id != user.id:
            raise DuplicateEmail()
        user.email = email.lower()
    role = changes.pop("role", None)
    if role is not None:
        user.role = role.value
    for field, value in changes.items():
        setattr(user, field, value)

    await session.commit()
    await session.refresh(user)
    return user


async def _get_user_or_404(session: AsyncSession, user_id: int) -> User:
    user = await session.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


@router.get("/profile", response_model=UserRead)
async def get_profile(current_user: User = Depends(get_current_user)) -> User:
    return current_user


@router.put("/profile", response_model=UserRead)
async def update_profile(
    payload: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
) -> User:
    return await _apply_changes(session, current_user, payload)


router.add_api_route(
    "/password",
    update_password,
    methods=["PUT"],
    response_model=TokenMessage,
    include_in_schema=False,
)


@router.get("/", response_model=list[UserRead])
async def list_users(
    _admin: User = Depends(get_admin_user),
    session: AsyncSession = Depends(get_db_session),
) -> Sequence[User]:
    result = await session.execute(select(User).order_by(User.name))
    return list(result.scalars().all())


@router.post("/", response_model=UserRead, status_code=status.HTTP_201_CREATED)
async def create_account(
    payload: UserCreate,
    admin: User = Depends(get_admin_user),
    session: AsyncSession = Depends(get_db_session),
) -> User:
    user = await create_user(session, payload)
    logger.info("User %s created by admin %s", user.id, admin.id)
    return user


@router.put("/{user_id}", response_model=UserRead)
async def update_account(
    user_id: int,
    payload: UserUpdate,
    admin: User = Depends(get_admin_user),
    session: AsyncSession = Depends(get_db_session),
) -> User:
    user = await _get_user_or_404(session, user_id)
    updated = await _apply_changes(session, user, payload)
    logger.info("User %s updated by admin %s", user_id, admin.id)
    return updated


@router.delete("/{user_id}", response_model=MessageResponse)
async def deactivate_account(
    user_id: int,
    admin: User = Depends(get_admin_user),
    session: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    """Accounts are deactivated rather than removed."""

    user = await _get_user_or_404(session, user_id)
    user.is_active = False
    await session.commit()
    logger.info("User %s deactivated by admin %s", user_id, admin.id)
    return MessageResponse(message="User deactivated")
