from pydantic_settings import BaseSettings
from pydantic import field_validator
from sqlalchemy.engine import URL
from functools import lru_cache
from typing import Optional, List
import os
from pathlib import Path

# Project root, one level above the package directory
APP_ROOT = Path(__file__).resolve().parent.parent.parent


def get_env_file_path() -> Path:
    """Return the location of the settings artifact written by the installer."""
    return Path(os.getenv("ENV_FILE", str(APP_ROOT / ".env"))).resolve()


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "WebSchedulr"
    VERSION: str = "1.0.0"
    DEBUG: bool = False
    TESTING: bool = os.getenv("TESTING", "0").lower() in ("1", "true", "t", "yes", "y")

    # Database - written by the installation wizard
    DB_TYPE: Optional[str] = None
    DB_HOST: str = "localhost"
    DB_PORT: int = 3306
    DB_USER: str = "root"
    DB_PASSWORD: str = ""
    DB_NAME: str = "webschedulr"
    DB_FILENAME: str = "database.sqlite"

    # Security
    SECRET_KEY: str = ""
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 1440

    # Redis (login rate limiting)
    REDIS_URL: str = "redis://localhost:6379"
    RATE_LIMIT_ENABLED: bool = True
    LOGIN_RATE_LIMIT: int = 10

    # Installation
    INSTALL_REQUIRE_REINSTALL_FOR_EXISTING_SCHEMA: bool = False
    INSTALL_REDIRECT: str = "/login"

    # CORS
    CORS_ORIGIN: str = "http://localhost:5173"

    @field_validator("DB_TYPE")
    @classmethod
    def normalize_db_type(cls, v: Optional[str]) -> Optional[str]:
        return v.strip().lower() if v else None

    @property
    def allowed_origins(self) -> List[str]:
        return [origin.strip() for origin in self.CORS_ORIGIN.split(",") if origin.strip()]

    @property
    def app_root(self) -> Path:
        """Directory that relative SQLite filenames are resolved against."""
        return get_env_file_path().parent

    @property
    def database_url(self) -> Optional[URL]:
        """Return the SQLAlchemy URL for the installed database, if any."""
        if self.DB_TYPE == "sqlite":
            return sqlite_url(resolve_sqlite_path(self.DB_FILENAME, self.app_root))
        if self.DB_TYPE == "mysql":
            return mysql_url(
                self.DB_HOST, self.DB_PORT, self.DB_USER, self.DB_PASSWORD, self.DB_NAME
            )
        return None

    class Config:
        case_sensitive = True
        extra = "ignore"


def resolve_sqlite_path(filename: str, root: Path) -> Path:
    path = Path(filename)
    if not path.is_absolute():
        path = root / path
    return path.resolve()


def sqlite_url(path: Path) -> URL:
    return URL.create("sqlite", database=str(path))


def mysql_url(
    host: str, port: int, user: str, password: str, database: Optional[str] = None
) -> URL:
    """Build a PyMySQL URL; credentials are escaped by SQLAlchemy."""
    return URL.create(
        "mysql+pymysql",
        username=user,
        password=password or None,
        host=host,
        port=int(port) if port else 3306,
        database=database or None,
        query={"charset": "utf8mb4"},
    )


@lru_cache()
def get_settings() -> Settings:
    """Load settings from the environment and the settings artifact."""
    return Settings(_env_file=get_env_file_path(), _env_file_encoding="utf-8")


def reload_settings() -> Settings:
    """Drop the cached settings and re-read the settings artifact."""
    get_settings.cache_clear()
    return get_settings()
