# File: campus_events/db/database.py
import logging
from typing import Generator
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from campus_events.core.config import settings

logger = logging.getLogger(__name__)

Base = declarative_base()


def create_engine_from_url(database_url: str):
    """
    Build a SQLAlchemy engine for the given URL.

    PostgreSQL gets pool_pre_ping so dropped connections are detected.
    SQLite gets a busy timeout so concurrent writers wait on each other
    instead of failing with "database is locked".
    """
    is_postgres = database_url.lower().startswith("postgres")

    if is_postgres:
        engine = create_engine(
            database_url,
            echo=False,
            pool_pre_ping=True,
            pool_size=5,
            max_overflow=10,
        )
        logger.info("PostgreSQL engine created with pool_pre_ping=True")
    else:
        engine = create_engine(
            database_url,
            echo=False,
            connect_args={
                "check_same_thread": False,
                "timeout": settings.SQLITE_BUSY_TIMEOUT,
            },
        )
        logger.info("SQLite engine created")

    return engine


def create_session_factory(engine) -> sessionmaker:
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


engine = create_engine_from_url(settings.DATABASE_URL)
SessionLocal = create_session_factory(engine)


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
