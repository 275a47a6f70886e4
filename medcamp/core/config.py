# medcamp/core/config.py
from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Centralized application settings loaded from environment.

    Required env vars (.env):
      - SUPABASE_URL
      - SUPABASE_KEY (anon key)
      - DATABASE_URL (Supabase Postgres connection string)

    Token verification:
      - AUTH_VERIFY_MODE=supabase (default): ask Supabase Auth to validate
        each bearer token.
      - AUTH_VERIFY_MODE=jwt: verify locally with SUPABASE_JWT_SECRET.
    """

    PROJECT_NAME: str = "Medical Camp Scheduling API"
    API_PREFIX: str = "/api"

    # Supabase / DB config
    SUPABASE_URL: str
    SUPABASE_KEY: str
    DATABASE_URL: str

    # Bearer token verification
    AUTH_VERIFY_MODE: Literal["supabase", "jwt"] = "supabase"
    SUPABASE_JWT_SECRET: str | None = None
    SUPABASE_JWT_ALG: str = "HS256"

    # Row Level Security: run each request's queries as the caller
    DB_APPLY_RLS: bool = True
    DB_RLS_ROLE: str = "authenticated"
    DB_STATEMENT_TIMEOUT_MS: int = 10_000
    # Keep small against the Supabase Session-mode pooler (client cap)
    DB_POOL_SIZE: int = 5
    DB_CREATE_TABLES: bool = True

    # Comma-separated list of allowed browser origins
    FRONTEND_URLS: str = "http://localhost:5173,http://127.0.0.1:5173"

    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.FRONTEND_URLS.split(",") if o.strip()]


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings loader.
    Ensures we don't re-parse .env on every import / request.
    """
    return Settings()
