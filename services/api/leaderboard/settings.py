"""Application settings via Pydantic Settings."""

from functools import lru_cache
import json
from urllib.parse import urlparse

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _asyncpg_connect_args_from_url(database_url: str) -> dict[str, object]:
    """
    Compute asyncpg connect_args based on DATABASE_URL.

    Railway Postgres uses an internal hostname (e.g. postgres.railway.internal)
    that rejects SSL negotiation. In that case we must explicitly disable SSL.
    """
    host = urlparse(database_url).hostname or ""
    if host.endswith(".railway.internal"):
        return {"ssl": False, "timeout": 20}
    return {}


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # App
    app_name: str = "Ranking API"
    app_version: str = "0.1.0"
    debug: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = 8080

    # Database (SQLite locally, PostgreSQL in production)
    database_url: str = "sqlite+aiosqlite:///./ranking.db"
    db_auto_create: bool = Field(
        default=True,
        description="Create missing tables on startup (use Alembic in production)",
    )

    @property
    def async_database_url(self) -> str:
        """Get database URL with an async driver.

        Railway provides postgresql:// but we need postgresql+asyncpg:// for async.
        """
        url = self.database_url
        if url.startswith("postgresql://"):
            url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
        elif url.startswith("sqlite://"):
            url = url.replace("sqlite://", "sqlite+aiosqlite://", 1)
        return url

    @property
    def asyncpg_connect_args(self) -> dict[str, object]:
        """Extra connect args for asyncpg (e.g. Railway SSL quirks)."""
        if not self.async_database_url.startswith("postgresql+asyncpg://"):
            return {}
        return _asyncpg_connect_args_from_url(self.async_database_url)

    # CORS (the ranking frontend is served from a different origin)
    cors_origins: list[str] = Field(
        default_factory=lambda: ["*"],
        validation_alias=AliasChoices("CORS_ORIGINS", "ALLOWED_ORIGINS"),
    )

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _parse_cors_origins(cls, v: object) -> list[str]:
        """
        Accept either:
        - JSON array string: '["https://a.com","http://localhost:3000"]'
        - Comma-separated string: "https://a.com,http://localhost:3000"
        - Already-parsed list[str]
        """
        if v is None:
            return []
        if isinstance(v, list):
            return [str(x).strip() for x in v if str(x).strip()]
        if isinstance(v, str):
            s = v.strip()
            if not s:
                return []
            if s.startswith("["):
                try:
                    parsed = json.loads(s)
                except json.JSONDecodeError:
                    parsed = s.split(",")
                if isinstance(parsed, list):
                    return [str(x).strip() for x in parsed if str(x).strip()]
                return [str(parsed).strip()]
            return [part.strip() for part in s.split(",") if part.strip()]
        return [str(v).strip()] if str(v).strip() else []

    # Ranking
    ranking_path: str = Field(
        default="/csbc",
        description="URL path of the ranking resource (kept for existing clients)",
    )
    ranking_clear_enabled: bool = Field(
        default=True,
        description="Expose DELETE on the ranking resource",
    )
    ranking_conflict_retries: int = Field(
        default=1,
        ge=0,
        le=5,
        description="Times a submit is retried as an update after losing a uniqueness race",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
