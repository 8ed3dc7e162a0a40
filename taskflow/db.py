# PURPOSE: create the engine, the Session factory and the startup connection check.

import logging
import time

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker, declarative_base

from .config import settings

logger = logging.getLogger(__name__)

# Choose engine based on DATABASE_URL; apply SQLite-specific connect_args only when needed.
db_url = settings.DATABASE_URL
connect_args = {"check_same_thread": False} if db_url.startswith("sqlite") else {}

engine = create_engine(db_url, connect_args=connect_args)

# SessionLocal: we open/close this per-request in FastAPI
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base: parent class for all ORM models (tables)
Base = declarative_base()


def wait_for_db(engine: Engine, retries: int = 5, delay: float = 2.0) -> None:
    """Block until `SELECT 1` succeeds; re-raise after the last failed attempt."""
    attempts = max(1, retries)
    for attempt in range(1, attempts + 1):
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            logger.info("database ready attempt=%s", attempt)
            return
        except OperationalError:
            if attempt == attempts:
                logger.error("database unreachable after %s attempts", attempts)
                raise
            logger.warning(
                "database not ready attempt=%s/%s retry_in=%ss", attempt, attempts, delay
            )
            time.sleep(delay)
