# app/core/config.py
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Centralized application settings loaded from environment.

    Required env vars (.env):
      - SUPABASE_URL
      - SUPABASE_KEY (anon key)
      - DATABASE_URL (Supabase Postgres connection string)
      - SESSION_SECRET (signs the client session token)

    Optional:
      - SUPABASE_SERVICE_ROLE_KEY (used for avatar uploads when set)
      - OAUTH_REDIRECT_URL (where the OAuth provider sends the user back)
    """

    PROJECT_NAME: str = "Junior Cleaning Backend"
    API_V1_STR: str = "/api/v1"

    # Supabase / DB config
    SUPABASE_URL: str
    SUPABASE_KEY: str
    DATABASE_URL: str

    # Service role key bypasses RLS (backend only)
    SUPABASE_SERVICE_ROLE_KEY: str | None = None
    STORAGE_BUCKET: str = "assets"

    # Client session token
    SESSION_SECRET: str
    SESSION_TOKEN_ALG: str = "HS256"
    SESSION_COOKIE_NAME: str = "jc_session"
    # Client sessions idle longer than this are closed
    SESSION_IDLE_SECONDS: float = 3600.0
    # Upper bound on open client sessions; the least recently used goes first
    MAX_CLIENT_SESSIONS: int = 1000

    # Profile defaults
    DEFAULT_LANGUAGE: str = "Dansk"

    # Booking notification
    BOOKING_WEBHOOK_URL: str = (
        "https://hook.eu2.make.com/wlrvmxwpe8f9junjaqw6622pmtn3t7vi"
    )
    # None => the webhook call never times out
    BOOKING_WEBHOOK_TIMEOUT: float | None = None

    OAUTH_REDIRECT_URL: str | None = None

    # How long a view waits for the profile load before answering "loading"
    PROFILE_WAIT_SECONDS: float = 10.0

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings loader.
    Ensures we don't re-parse .env on every import / request.
    """
    return Settings()
