# app/config.py
import os
from dotenv import load_dotenv

# load .env as soon as this module is imported
load_dotenv()


def _env_true(v: str | None) -> bool:
    return str(v).lower() in {"1", "true", "yes", "y"}


class Settings:
    # database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./news.db")
    SQL_ECHO: bool = _env_true(os.getenv("SQL_ECHO", "0"))
    DB_POOL_RECYCLE: int = int(os.getenv("DB_POOL_RECYCLE", "300"))
    DB_USE_NULLPOOL: bool = _env_true(os.getenv("DB_USE_NULLPOOL", "0"))
    SKIP_DB_INIT: bool = _env_true(os.getenv("SKIP_DB_INIT"))

    # NewsAPI (https://newsapi.org)
    NEWS_API_KEY: str = os.getenv("NEWS_API_KEY", "")
    NEWS_API_BASE_URL: str = os.getenv("NEWS_API_BASE_URL", "https://newsapi.org/v2").rstrip("/")
    NEWS_API_TIMEOUT: float = float(os.getenv("NEWS_API_TIMEOUT", "8"))

    # auth cookie / JWT
    JWT_SECRET: str = os.getenv("JWT_SECRET", "change-me-please-use-at-least-32-chars")
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRE_DAYS: int = int(os.getenv("JWT_EXPIRE_DAYS", "7"))
    AUTH_COOKIE_NAME: str = os.getenv("AUTH_COOKIE_NAME", "auth-token")
    COOKIE_SECURE: bool = _env_true(os.getenv("COOKIE_SECURE", "0"))

    # admin bootstrap
    ADMIN_SEED_KEY: str = os.getenv("ADMIN_SEED_KEY", "")
    ADMIN_EMAIL: str = os.getenv("ADMIN_EMAIL", "")
    ADMIN_PASSWORD: str = os.getenv("ADMIN_PASSWORD", "")

    # misc
    FRONTEND_URL: str | None = os.getenv("FRONTEND_URL")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")


settings = Settings()
