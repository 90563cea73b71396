"""Demo accounts for local development."""
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from .auth import find_user_by_email, hash_password
from .enums import Role
from .logging_config import get_logger
from .models import User

logger = get_logger(__name__)


@dataclass(frozen=True)
class DemoAccount:
    name: str
    email: str
    password: str
    role: Role
    department: str
    position: str


DEMO_ACCOUNTS = (
    DemoAccount(
        name="Admin User",
        email="admin@example.com",
        password="admin123",
        role=Role.ADMIN,
        department="Administration",
        position="System Administrator",
    ),
    DemoAccount(
        name="Employee User",
        email="employee@example.com",
        password="employee",
        role=Role.EMPLOYEE,
        department="Sales",
        position="Sales Representative",
    ),
)


async def seed_demo_users(session: AsyncSession) -> list[User]:
    """Insert any demo account that does not exist yet; returns the new ones."""

    created: list[User] = []
    for account in DEMO_ACCOUNTS:
        if await find_user_by_email(session, account.email) is not None:
            continue
        user = User(
            name=account.name,
            email=account.email,
            password_hash=hash_password(account.password),
            role=account.role.value,
            department=account.department,
            position=account.position,
        )
        session.add(user)
        created.append(user)

    if created:
        await session.commit()
        logger.info("Seeded %s demo account(s)", len(created))
    return created
