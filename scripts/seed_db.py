"""
Create the database tables and insert the demo accounts.

Uses DATABASE_URL from the environment (or backend/.env), e.g.
  DATABASE_URL=sqlite+aiosqlite:///./hrms.db python scripts/seed_db.py

Demo logins:
  - admin@example.com / admin123
  - employee@example.com / employee
"""
from __future__ import annotations

import asyncio
import sys
from pathlib import Path

# --- ensure backend/ on sys.path ---
BACKEND_DIR = Path(__file__).resolve().parents[1] / "backend"
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from hrms.config import get_settings  # noqa: E402
from hrms.database import AsyncSessionLocal, create_schema, engine  # noqa: E402
from hrms.logging_config import configure_logging  # noqa: E402
from hrms.seed import seed_demo_users  # noqa: E402


async def seed() -> int:
    await create_schema()

    async with AsyncSessionLocal() as session:
        created = await seed_demo_users(session)

    await engine.dispose()
    return len(created)


if __name__ == "__main__":
    settings = get_settings()
    logger = configure_logging(settings.log_level, settings.log_json)
    count = asyncio.run(seed())
    logger.info("Seeding finished: %s new account(s)", count)
