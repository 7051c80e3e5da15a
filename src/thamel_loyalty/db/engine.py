"""
Database engine and session management
PostgreSQL in deployed environments, SQLite for local development and tests
"""
import logging
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session

from ..config import config

logger = logging.getLogger(__name__)


def create_database_engine(database_url: str) -> Engine:
    """Create database engine with settings suited to the backend"""
    if database_url.startswith("postgresql"):
        engine = create_engine(
            database_url,
            pool_pre_ping=True,  # Verify connections before using
            pool_size=5,
            max_overflow=10,
            pool_recycle=900,  # Recycle connections after 15 minutes
            pool_timeout=10,
            echo=False,
            connect_args={
                "connect_timeout": 10,
                "application_name": "thamel_loyalty",
            },
        )
        logger.info("PostgreSQL engine created")
    else:
        # Writers wait on the SQLite lock instead of failing immediately
        engine = create_engine(
            database_url,
            connect_args={"check_same_thread": False, "timeout": 30},
        )
        logger.info("SQLite engine created (local development)")
    return engine


engine = create_database_engine(config.DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency yielding a request-scoped session"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind: Engine = None) -> None:
    """Create tables and indexes that do not exist yet"""
    from .base import Base
    from . import models  # noqa: F401  (registers models on the metadata)

    Base.metadata.create_all(bind=bind or engine)
    logger.info("Database schema ensured")
