from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from fastapi import HTTPException, status
from typing import Generator, Optional
import logging
import redis

from .config import get_settings

logger = logging.getLogger(__name__)

Base = declarative_base()


class DatabaseManager:
    """Owns the runtime engine for the installed database.

    The engine is created lazily from the current settings and torn down
    with ``dispose()`` on shutdown or whenever the settings are reloaded.
    """

    def __init__(self):
        self._engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker] = None

    @property
    def is_configured(self) -> bool:
        return get_settings().database_url is not None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            settings = get_settings()
            url = settings.database_url
            if url is None:
                raise RuntimeError("Database is not configured")

            if settings.DB_TYPE == "sqlite":
                self._engine = create_engine(
                    url, connect_args={"check_same_thread": False}
                )
            else:
                self._engine = create_engine(
                    url,
                    pool_size=5,
                    max_overflow=10,
                    pool_timeout=30,
                    pool_recycle=1800,  # Recycle connections after 30 minutes
                    pool_pre_ping=True,
                )
            self._session_factory = sessionmaker(
                autocommit=False, autoflush=False, bind=self._engine
            )
            logger.info(f"Opened {settings.DB_TYPE} database engine")
        return self._engine

    def session(self) -> Session:
        if self._session_factory is None:
            self.engine  # builds the engine and session factory
        return self._session_factory()

    def dispose(self):
        if self._engine is not None:
            self._engine.dispose()
            logger.info("Database engine disposed")
        self._engine = None
        self._session_factory = None


db_manager = DatabaseManager()

_redis_client = None


# Database dependency
def get_db() -> Generator[Session, None, None]:
    """Get database session."""
    if not db_manager.is_configured:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Application is not installed",
        )
    db = db_manager.session()
    try:
        yield db
    finally:
        db.close()


# Redis dependency
def get_redis():
    """Get Redis client."""
    global _redis_client
    if _redis_client is None:
        _redis_client = redis.from_url(get_settings().REDIS_URL, decode_responses=True)
    return _redis_client


# Database initialization
def init_db():
    """Create any application tables missing from the installed database."""
    from ..models import appointment, company, user  # noqa: F401

    Base.metadata.create_all(bind=db_manager.engine)
