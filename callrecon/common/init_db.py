"""
Database Initialization Script

This module provides database table creation functionality for the
CallRecon system. It creates all tables defined in the models module.

Usage:
    python -m callrecon.common.init_db

Author: CallRecon Team
Date: 2026-10-18
"""

import logging

from callrecon.common.db import Base, init_engine
from callrecon.common import models  # noqa: F401 - Import needed to register models

logger = logging.getLogger("init_db")


def create_tables():
    """
    Create all database tables.

    Returns:
        sqlalchemy.Engine: The engine the schema was created on
    """
    engine = init_engine()
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created successfully")
    return engine


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO)
    create_tables()
