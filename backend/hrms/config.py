"""Application settings and configuration helpers."""
from functools import lru_cache
import os
from pydantic import BaseModel, Field
from dotenv import load_dotenv

load_dotenv()


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


class Settings(BaseModel):
    """Runtime configuration loaded from environment variables."""

    database_url: str = Field(
        default="sqlite+aiosqlite:///./hrms.db", alias="DATABASE_URL"
    )
    secret_key: str = Field(default="change-me", alias="SECRET_KEY")
    access_token_expires_minutes: int = Field(default=60 * 24)
    password_reset_expires_minutes: int = Field(default=10)
    app_env: str = Field(default="development", alias="APP_ENV")
    frontend_url: str = Field(default="http://localhost:3000", alias="FRONTEND_URL")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_json: bool = Field(default=False, alias="LOG_JSON")
    seed_demo_users: bool = Field(default=False, alias="SEED_DEMO_USERS")
    relay_enabled: bool = Field(default=True, alias="RELAY_ENABLED")

    model_config = {
        "populate_by_name": True,
        "extra": "ignore",
    }

    @property
    def is_production(self) -> bool:
        return self.app_env.lower() in {"prod", "production"}


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""

    defaults = Settings.model_fields
    return Settings(
        database_url=os.getenv("DATABASE_URL", defaults["database_url"].default),
        secret_key=os.getenv("SECRET_KEY", defaults["secret_key"].default),
        access_token_expires_minutes=int(
            os.getenv("ACCESS_TOKEN_EXPIRES_MINUTES", defaults["access_token_expires_minutes"].default)
        ),
        password_reset_expires_minutes=int(
            os.getenv("PASSWORD_RESET_EXPIRES_MINUTES", defaults["password_reset_expires_minutes"].default)
        ),
        app_env=os.getenv("APP_ENV", defaults["app_env"].default),
        frontend_url=os.getenv("FRONTEND_URL", defaults["frontend_url"].default),
        log_level=os.getenv("LOG_LEVEL", defaults["log_level"].default),
        log_json=_env_flag("LOG_JSON", defaults["log_json"].default),
        seed_demo_users=_env_flag("SEED_DEMO_USERS", defaults["seed_demo_users"].default),
        relay_enabled=_env_flag("RELAY_ENABLED", defaults["relay_enabled"].default),
    )
