"""Central configuration for the Trade Hub API."""

import os
from pathlib import Path
from typing import List
from urllib.parse import quote_plus

from dotenv import load_dotenv

load_dotenv()


def _build_database_url() -> str:
    url = os.getenv("DATABASE_URL")
    if url:
        return url
    user = os.getenv("DB_USER")
    password = os.getenv("DB_PASS")
    if user and password:
        host = os.getenv("DB_HOST", "cluster0.mongodb.net")
        return (
            f"mongodb+srv://{quote_plus(user)}:{quote_plus(password)}@{host}/"
            "?retryWrites=true&w=majority"
        )
    return "mongodb://localhost:27017"


class Settings:
    """Central configuration for the Trade Hub API."""

    # --- Store ---
    DATABASE_URL: str = _build_database_url()
    DATABASE_NAME: str = os.getenv("DATABASE_NAME", "my-import-db")
    SERVER_SELECTION_TIMEOUT_MS: int = int(os.getenv("SERVER_SELECTION_TIMEOUT_MS", "5000"))

    # --- Server ---
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "4000"))
    CORS_ORIGINS: List[str] = [
        o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()
    ]

    # --- Catalog ---
    LATEST_PRODUCTS_LIMIT: int = 6

    # --- Logging ---
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
    LOG_TO_FILE: bool = os.getenv("LOG_TO_FILE", "true").lower() in ("1", "true", "yes")
    BASE_DIR: Path = Path(__file__).resolve().parent
    LOGS_DIR: Path = Path(os.getenv("LOGS_DIR", str(BASE_DIR / "logs")))
