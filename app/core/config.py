# app/core/config.py
"""
Settings da aplicação (lidas do ambiente / .env).
"""

from __future__ import annotations

import os

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


class Settings:
    """Application settings loaded from environment variables."""

    APP_NAME: str = os.getenv("APP_NAME", "Catalog Facets API")
    APP_VERSION: str = os.getenv("APP_VERSION", "0.1.0")

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./catalog.db")
    DB_ECHO: bool = _env_bool("DB_ECHO")
    # Postgres only: server-side bound per statement
    DB_STATEMENT_TIMEOUT_MS: int = int(os.getenv("DB_STATEMENT_TIMEOUT_MS", "5000"))

    # Catalog listing
    CATALOG_DEFAULT_PAGE_SIZE: int = int(os.getenv("CATALOG_DEFAULT_PAGE_SIZE", "10"))
    CATALOG_MAX_PAGE_SIZE: int = int(os.getenv("CATALOG_MAX_PAGE_SIZE", "100"))
    CATALOG_QUERY_TIMEOUT_S: float = float(os.getenv("CATALOG_QUERY_TIMEOUT_S", "5"))
    CATALOG_QUERY_WORKERS: int = int(os.getenv("CATALOG_QUERY_WORKERS", "8"))
    CATALOG_LIST_WORKERS: int = int(os.getenv("CATALOG_LIST_WORKERS", "8"))

    # Result cache: "memory" | "redis" | "none"
    CATALOG_CACHE_BACKEND: str = os.getenv("CATALOG_CACHE_BACKEND", "memory").lower()
    CATALOG_CACHE_TTL_S: int = int(os.getenv("CATALOG_CACHE_TTL_S", "36000"))  # 10h
    CATALOG_CACHE_TTL_CATEGORY_S: int = int(os.getenv("CATALOG_CACHE_TTL_CATEGORY_S", "3600"))
    CATALOG_CACHE_MAX_ENTRIES: int = int(os.getenv("CATALOG_CACHE_MAX_ENTRIES", "2048"))
    REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")


settings = Settings()
