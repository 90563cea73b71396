"""Test fixtures for the backend."""
import os
from pathlib import Path
from typing import Any, AsyncIterator, Callable, Dict

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test_backend.db")
os.environ.setdefault("SECRET_KEY", "test-secret")
os.environ.setdefault("SEED_DEMO_USERS", "false")

from hrms import models  # noqa: E402
from hrms.auth import hash_password, issue_access_token  # noqa: E402
from hrms.database import AsyncSessionLocal, create_schema, engine  # noqa: E402
from hrms.enums import Role  # noqa: E402
from hrms.main import app  # noqa: E402
from hrms.websocket_manager import get_publisher  # noqa: E402


test_db_path = Path("test_backend.db")


class RecordingPublisher:
    """Keeps every published event in memory instead of pushing it."""

    def __init__(self) -> None:
        self.events: list[Dict[str, Any]] = []

    def publish(self, user_id: int, channel: str, action: str, data: Dict[str, Any]) -> None:
        self.events.append({"user_id": user_id, "channel": channel, "action": action, "data": data})

    def on(self, channel: str, action: str | None = None) -> list[Dict[str, Any]]:
        return [
            event
            for event in self.events
            if event["channel"] == channel and (action is None or event["action"] == action)
        ]


@pytest_asyncio.fixture(autouse=True)
async def prepare_database() -> AsyncIterator[None]:
    """Create the database schema before each test and drop it afterwards."""

    await create_schema()
    yield
    async with engine.begin() as conn:
        await conn.run_sync(models.Base.metadata.drop_all)
    # Pooled connections belong to this test's event loop
    await engine.dispose()
    if test_db_path.exists():
        test_db_path.unlink()


@pytest_asyncio.fixture
async def events() -> AsyncIterator[RecordingPublisher]:
    recorder = RecordingPublisher()
    app.dependency_overrides[get_publisher] = lambda: recorder
    yield recorder
    app.dependency_overrides.pop(get_publisher, None)


@pytest_asyncio.fixture
async def client(events: RecordingPublisher) -> AsyncIterator[AsyncClient]:
    """Provide an HTTP client for integration tests."""

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


@pytest_asyncio.fixture
async def session() -> AsyncIterator[AsyncSession]:
    async with AsyncSessionLocal() as session:
        yield session


@pytest_asyncio.fixture
async def make_user(session: AsyncSession) -> Callable[..., Any]:
    """Factory inserting a user directly, bypassing the admin-only API."""

    async def factory(
        email: str,
        *,
        name: str = "Test User",
        password: str = "password123",
        role: Role = Role.EMPLOYEE,
        department: str = "Engineering",
        position: str = "Developer",
        is_active: bool = True,
    ) -> models.User:
        user = models.User(
            name=name,
            email=email.lower(),
            password_hash=hash_password(password),
            role=role.value,
            department=department,
            position=position,
            is_active=is_active,
        )
        session.add(user)
        await session.commit()
        return user

    return factory


@pytest_asyncio.fixture
async def admin(make_user: Callable[..., Any]) -> models.User:
    return await make_user(
        "admin@example.com",
        name="Admin User",
        role=Role.ADMIN,
        department="Administration",
        position="System Administrator",
    )


@pytest_asyncio.fixture
async def employee(make_user: Callable[..., Any]) -> models.User:
    return await make_user("employee@example.com", name="Employee User", department="Sales")


def auth_headers(user: models.User) -> Dict[str, str]:
    return {"Authorization": f"Bearer {issue_access_token(user)}"}


@pytest_asyncio.fixture
async def admin_headers(admin: models.User) -> Dict[str, str]:
    return auth_headers(admin)


@pytest_asyncio.fixture
async def employee_headers(employee: models.User) -> Dict[str, str]:
    return auth_headers(employee)
