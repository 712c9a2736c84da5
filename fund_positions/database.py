# fund_positions/database.py
"""
Database connection and session management.

This module configures SQLAlchemy with:
- Connection pooling for production performance
- Environment-aware settings (test vs production)
- Health check and startup wait helpers

Pool Configuration (configurable via environment variables):
- DB_POOL_SIZE: Persistent connections (default: 5)
- DB_POOL_MAX_OVERFLOW: Burst capacity (default: 10)
- DB_POOL_RECYCLE: Connection lifetime (default: 3600s)
- DB_POOL_PRE_PING: Health checks (default: True)
"""

import logging
import time
from collections.abc import Generator

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool, QueuePool

from .config import settings

logger = logging.getLogger(__name__)


def _create_engine() -> Engine:
    """
    Create SQLAlchemy engine with environment-appropriate configuration.

    - SQLite: StaticPool so an in-memory database is shared across sessions
    - PostgreSQL: QueuePool with configurable connection pooling
    """
    if settings.is_sqlite:
        # check_same_thread=False required for FastAPI's threadpool
        logger.info("Configuring SQLite database")
        return create_engine(
            settings.database_url,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
            echo=settings.debug,
        )

    logger.info(
        f"Configuring database pool: "
        f"size={settings.db_pool_size}, "
        f"max_overflow={settings.db_pool_max_overflow}, "
        f"recycle={settings.db_pool_recycle}s, "
        f"pre_ping={settings.db_pool_pre_ping}"
    )

    return create_engine(
        settings.database_url,
        poolclass=QueuePool,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_pool_max_overflow,
        pool_recycle=settings.db_pool_recycle,
        pool_pre_ping=settings.db_pool_pre_ping,
        pool_timeout=30,
        echo=settings.debug,
    )


engine = _create_engine()
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """
    Dependency that provides a database session.

    Yields:
        Session: A SQLAlchemy database session that auto-closes after use.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def wait_for_database(
        retries: int | None = None,
        interval: float | None = None,
        bind: Engine | None = None,
) -> None:
    """
    Block until the database accepts connections.

    Containers start the API alongside the database, so the first
    connection attempts may be refused. Each attempt runs ``SELECT 1``.

    Args:
        retries: Number of attempts (default: settings.db_connect_retries)
        interval: Seconds between attempts (default: settings.db_connect_retry_interval)
        bind: Engine to probe (default: module engine)

    Raises:
        OperationalError: If the database is still unreachable after all attempts
    """
    retries = retries if retries is not None else settings.db_connect_retries
    interval = interval if interval is not None else settings.db_connect_retry_interval
    bind = bind if bind is not None else engine

    for attempt in range(1, retries + 1):
        try:
            with bind.connect() as conn:
                conn.execute(text("SELECT 1"))
            logger.info(f"Database reachable after {attempt} attempt(s)")
            return
        except OperationalError as e:
            if attempt == retries:
                logger.error(f"Database unreachable after {retries} attempts: {e}")
                raise
            logger.warning(
                f"Database not ready (attempt {attempt}/{retries}), "
                f"retrying in {interval}s"
            )
            time.sleep(interval)


def check_database_health() -> dict:
    """
    Check database connectivity.

    Returns:
        dict: Health status with connection info

    Used by health check endpoints to verify database availability.
    """
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
            conn.commit()

        status = {
            "status": "healthy",
            "database": engine.dialect.name,
        }
        if isinstance(engine.pool, QueuePool):
            status["pool"] = {
                "pool_size": engine.pool.size(),
                "checked_in": engine.pool.checkedin(),
                "checked_out": engine.pool.checkedout(),
                "overflow": engine.pool.overflow(),
            }
        return status
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return {
            "status": "unhealthy",
            "error": str(e),
        }
