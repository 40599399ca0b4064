"""Initialize the database with proper schema"""

import logging

from sqlalchemy.engine import Engine

from hotkey_tracker.db.base import Base

# Import all models explicitly to register them with SQLAlchemy
from hotkey_tracker.db.models import tracking as _model_tracking  # noqa: F401

logger = logging.getLogger(__name__)


def init_database(engine: Engine) -> None:
    """Create all tables with proper schema"""
    try:
        Base.metadata.create_all(bind=engine)
        table_names = [table.name for table in Base.metadata.sorted_tables]
        logger.info("Database initialized", extra={
            "table_count": len(table_names),
            "tables": table_names
        })
    except Exception as e:
        logger.error(f"Error initializing database: {e}", extra={
            "error_type": type(e).__name__,
        })
        raise
