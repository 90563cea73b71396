"""Employee directory endpoints for the FastAPI backend."""
from typing import Sequence

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..dependencies import get_admin_user, get_db_session
from ..enums import Role
from ..models import User
from ..schemas import EmployeeStats, UserRead

router = APIRouter(prefix="/employees", tags=["employees"])


@router.get("/", response_model=list[UserRead])
async def list_employees(
    _admin: User = Depends(get_admin_user),
    session: AsyncSession = Depends(get_db_session),
) -> Sequence[User]:
    """Return every employee-role account ordered by name."""

    result = await session.execute(
        select(User).where(User.role == Role.EMPLOYEE.value).order_by(User.name)
    )
    return list(result.scalars().all())


@router.get("/stats", response_model=EmployeeStats)
async def employee_stats(
    _admin: User = Depends(get_admin_user),
    session: AsyncSession = Depends(get_db_session),
) -> EmployeeStats:
    """Headcount, active headcount and the distinct departments."""

    is_employee = User.role == Role.EMPLOYEE.value
    total = await session.scalar(select(func.count()).select_from(User).where(is_employee))
    active = await session.scalar(
        select(func.count()).select_from(User).where(is_employee, User.is_active.is_(True))
    )
    departments = await session.execute(
        select(User.department).where(is_employee).distinct().order_by(User.department)
    )
    return EmployeeStats(
        total=int(total or 0),
        active=int(active or 0),
        departments=[name for name in departments.scalars().all() if name],
    )


@router.get("/{employee_id}", response_model=UserRead)
async def get_employee(
    employee_id: int,
    _admin: User = Depends(get_admin_user),
    session: AsyncSession = Depends(get_db_session),
) -> User:
    result = await session.execute(
        select(User).where(User.id == employee_id, User.role == Role.EMPLOYEE.value)
    )
    employee = result.scalar_one_or_none()
    if employee is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Employee not found")
    return employee
