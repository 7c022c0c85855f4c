"""Application configuration.

Environment variables override all defaults. A `.env` file next to the
project root is loaded first for local development.
"""

import os
from pathlib import Path
from typing import List

from dotenv import load_dotenv

_PROJECT_DIR = Path(__file__).resolve().parents[2]
load_dotenv(dotenv_path=_PROJECT_DIR / ".env", override=False)


def _split_csv(value: str) -> List[str]:
    return [v.strip() for v in value.split(",") if v.strip()]


class Settings:
    # Database Configuration
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./storefront.db")
    # Seconds a SQLite writer waits for the database lock before failing
    SQLITE_BUSY_TIMEOUT_SECONDS: float = float(os.getenv("SQLITE_BUSY_TIMEOUT_SECONDS", "30"))

    # Environment
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    DEBUG: bool = ENVIRONMENT == "development"
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "DEBUG" if DEBUG else "INFO").upper()

    # CORS (specific origins only, no wildcards)
    CORS_ORIGINS: List[str] = _split_csv(
        os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000")
    )

    # Pagination
    DEFAULT_PAGE_SIZE: int = int(os.getenv("DEFAULT_PAGE_SIZE", "10"))
    MAX_PAGE_SIZE: int = int(os.getenv("MAX_PAGE_SIZE", "100"))

    # Inventory: products at or below this stock are reported as "low"
    LOW_STOCK_THRESHOLD: int = int(os.getenv("LOW_STOCK_THRESHOLD", "10"))

    # Catalog import
    IMPORT_MAX_ROWS: int = int(os.getenv("IMPORT_MAX_ROWS", "5000"))
    # Largest accepted import upload, in bytes
    IMPORT_MAX_BYTES: int = int(os.getenv("IMPORT_MAX_BYTES", str(5 * 1024 * 1024)))

    # Users
    MIN_PASSWORD_LENGTH: int = int(os.getenv("MIN_PASSWORD_LENGTH", "6"))
    MIN_USERNAME_LENGTH: int = 3


settings = Settings()
