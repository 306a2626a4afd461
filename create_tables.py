#!/usr/bin/env python3
"""
Create database tables directly using SQLAlchemy (development bootstrap;
use `alembic upgrade head` everywhere else)
"""
import sys
import logging

from campus_events.db.database import Base, engine
from campus_events import models  # noqa: F401  registers all tables

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def create_tables() -> bool:
    """Create all database tables"""
    try:
        logger.info("Creating database tables...")
        Base.metadata.create_all(bind=engine)
        logger.info("Tables created successfully!")
        return True
    except Exception as e:
        logger.error(f"Error creating tables: {e}")
        return False


if __name__ == "__main__":
    success = create_tables()
    sys.exit(0 if success else 1)
