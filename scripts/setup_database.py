#!/usr/bin/env python3
"""
Database setup script for Hotkey Tracker.

Creates the tables and purges sessions past the retention window, the same
work the application performs at startup.
"""

import sys
from datetime import timedelta

from sqlalchemy import inspect

from hotkey_tracker.core.config import settings
from hotkey_tracker.db.init_db import init_database
from hotkey_tracker.db.session import create_db_engine, create_session_factory
from hotkey_tracker.services.session_store import SessionStore


def main() -> bool:
    """Initialize database based on configuration"""
    print("Hotkey Tracker Database Setup")
    print("=" * 40)
    print(f"Database URL: {settings.database_url}")

    engine = create_db_engine(settings.database_url)
    try:
        init_database(engine)
        tables = inspect(engine).get_table_names()
        print(f"Tables: {', '.join(sorted(tables))}")

        store = SessionStore(create_session_factory(engine))
        purged = store.purge_older_than(timedelta(days=settings.session_retention_days))
        print(f"Purged sessions: {purged}")
        print(f"Live sessions: {store.count_sessions()} / {settings.max_sessions}")
        return True
    except Exception as e:
        print(f"Database initialization failed: {e}")
        return False
    finally:
        engine.dispose()


if __name__ == "__main__":
    success = main()
    sys.exit(0 if success else 1)
