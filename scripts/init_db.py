"""
Initialize the database with all tables
"""
import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from config import settings
from src.database.database import init_db


if __name__ == "__main__":
    logging.basicConfig(level=settings.log_level)
    print("Initializing training-program database...")
    print("-" * 50)

    try:
        init_db()
        print("-" * 50)
        print("✓ Database initialization complete!")
        print(f"  Location: {settings.database_url}")
    except Exception as e:
        print(f"✗ Error initializing database: {e}")
        sys.exit(1)
