# backend/portfolio_analytics/database.py
"""
Database connection and session management.

SQLAlchemy engine for the lot and price-cache tables:
- SQLite runs on a single shared connection (in-memory tests)
- PostgreSQL uses a QueuePool sized from DB_POOL_* settings
- check_database_health() backs the readiness probe
"""

import logging
from collections.abc import Generator

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool, QueuePool

from portfolio_analytics.config import settings

logger = logging.getLogger(__name__)


def _create_engine() -> Engine:
    """
    Create the SQLAlchemy engine for the configured database.

    - SQLite: StaticPool so every session sees the same in-memory database;
      check_same_thread=False because FastAPI runs sync routes in a threadpool
    - PostgreSQL: QueuePool with configurable size and recycling
    """
    if settings.is_sqlite:
        logger.info("Configuring SQLite database")
        return create_engine(
            settings.database_url,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
            echo=settings.debug,
        )

    logger.info(
        f"Configuring PostgreSQL database pool: "
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
    FastAPI dependency that yields a session and closes it afterwards.

    Usage:
        @router.get("/summary")
        def get_summary(db: Session = Depends(get_db)):
            ...
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def check_database_health() -> dict:
    """
    Ping the database and report pool usage.

    Returns:
        dict with "status" of "healthy" or "unhealthy"; never raises
    """
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))

        result: dict = {
            "status": "healthy",
            "database": "sqlite" if settings.is_sqlite else "postgresql",
        }
        pool = engine.pool
        if isinstance(pool, QueuePool):
            result["pool"] = {
                "pool_size": pool.size(),
                "checked_in": pool.checkedin(),
                "checked_out": pool.checkedout(),
                "overflow": pool.overflow(),
            }
        return result
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return {
            "status": "unhealthy",
            "error": str(e),
        }
