#!/usr/bin/env python3
"""Create the calendar SQLite3 database with event blob and request log tables."""

import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.config import DB_PATH
from core.database import init_schema


def create_database():
    """Create the database and tables if they don't exist."""
    init_schema(DB_PATH)
    print(f"Database created successfully at: {DB_PATH}")


if __name__ == "__main__":
    create_database()
