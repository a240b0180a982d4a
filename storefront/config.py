# storefront/config.py
from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    ENV: str = "development"

    # "local" keeps tables in DATA_DIR (CSV files), "rest" talks to the hosted service
    BACKEND: str = "local"
    SERVICE_URL: str = "http://localhost:54321"
    SERVICE_ANON_KEY: str = ""
    HTTP_TIMEOUT: float = 10.0

    DATA_DIR: Path = Path("data")          # CSV tables for the local backend
    STORAGE_DIR: Path = Path("storage")    # per-session cart / auth snapshots

    # local auth provider
    JWT_SECRET: str = "dev-secret-change-me"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    TAX_RATE: Decimal = Decimal("0.10")

    # profile provisioning after sign-up is asynchronous on the hosted service
    PROFILE_FETCH_ATTEMPTS: int = 5
    PROFILE_FETCH_BACKOFF: float = 0.25

    SESSION_COOKIE: str = "sid"
    # live sessions kept in memory; older ones are reloaded from their snapshots
    SESSION_CACHE_SIZE: int = 1000
    CORS_ORIGINS: List[str] = ["http://localhost:5173"]

    # Example .env:
    # BACKEND=rest
    # SERVICE_URL=https://xyzcompany.supabase.co
    # SERVICE_ANON_KEY=...

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """Return cached Settings instance."""
    return Settings()


settings = get_settings()
