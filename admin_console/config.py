"""Application configuration loaded from .env and resources.yaml."""

from pathlib import Path
from functools import lru_cache

import yaml
from dotenv import load_dotenv
import os

load_dotenv()

BASE_DIR = Path(__file__).resolve().parent.parent


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Settings:
    # Explicit URL wins over the backend-specific settings below
    DATABASE_URL: str = os.getenv("DATABASE_URL", "")
    DB_BACKEND: str = os.getenv("DB_BACKEND", "sqlite").lower()

    # SQLite (default local store)
    SQLITE_PATH: str = os.getenv("SQLITE_PATH", str(BASE_DIR / "console.db"))

    # MySQL
    MYSQL_HOST: str = os.getenv("MYSQL_HOST", "localhost")
    MYSQL_PORT: int = int(os.getenv("MYSQL_PORT", "3306"))
    MYSQL_USER: str = os.getenv("MYSQL_USER", "root")
    MYSQL_PASSWORD: str = os.getenv("MYSQL_PASSWORD", "")
    MYSQL_DATABASE: str = os.getenv("MYSQL_DATABASE", "staff_console")
    DB_POOL_SIZE: int = int(os.getenv("DB_POOL_SIZE", "5"))
    DB_MAX_OVERFLOW: int = int(os.getenv("DB_MAX_OVERFLOW", "10"))

    # Resource manifest
    RESOURCES_PATH: str = os.getenv("RESOURCES_PATH", str(BASE_DIR / "config" / "resources.yaml"))

    # Create missing tables on startup
    INIT_SCHEMA: bool = _env_flag("INIT_SCHEMA", "true")

    # Server
    CORS_ALLOW_ORIGINS: str = os.getenv("CORS_ALLOW_ORIGINS", "*")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    @property
    def mysql_url(self) -> str:
        return (
            f"mysql+aiomysql://{self.MYSQL_USER}:{self.MYSQL_PASSWORD}"
            f"@{self.MYSQL_HOST}:{self.MYSQL_PORT}/{self.MYSQL_DATABASE}"
        )

    @property
    def sqlite_url(self) -> str:
        return f"sqlite+aiosqlite:///{self.SQLITE_PATH}"

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        if self.DB_BACKEND == "mysql":
            return self.mysql_url
        return self.sqlite_url

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.CORS_ALLOW_ORIGINS.split(",") if o.strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()


_manifest_cache: dict = {}
_manifest_mtime: float = 0.0
_manifest_path: str = ""


def load_resource_manifest() -> dict:
    """Load the resource manifest from config/resources.yaml with file mtime caching.

    Re-reads the file only when its path or modification time changes.
    """
    global _manifest_cache, _manifest_mtime, _manifest_path
    manifest_file = Path(get_settings().RESOURCES_PATH)
    mtime = manifest_file.stat().st_mtime
    if mtime != _manifest_mtime or str(manifest_file) != _manifest_path:
        with open(manifest_file, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        _manifest_cache = data
        _manifest_mtime = mtime
        _manifest_path = str(manifest_file)
    return _manifest_cache
