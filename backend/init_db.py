#!/usr/bin/env python3
# backend/init_db.py
"""
Database initialization script.

Creates the account, investment and cache tables on DATABASE_URL.

This script can be run from any directory:
    python backend/init_db.py
    cd backend && python init_db.py
"""
import logging
import sys
from pathlib import Path

# Add the backend directory to Python path so 'portfolio_analytics' is importable
backend_dir = Path(__file__).parent
sys.path.insert(0, str(backend_dir))

from portfolio_analytics.database import engine
from portfolio_analytics.models import Base
from portfolio_analytics.utils import setup_logging

logger = logging.getLogger("init_db")


def init_db() -> None:
    """Create all database tables defined in models."""
    logger.info("Creating database tables...")
    Base.metadata.create_all(bind=engine)
    logger.info(f"Tables created: {', '.join(sorted(Base.metadata.tables))}")


if __name__ == "__main__":
    setup_logging()
    init_db()
