"""
Migration script to add the Mesocycle, MesocycleSession and MesocycleSessionExercise tables
"""
import logging
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from config import settings
from src.database.database import get_db
from src.database.auto_migrate import PERIODIZATION_TABLES, auto_migrate, get_migration_status
from src.database.models import Mesocycle, MesocycleSession, MesocycleSessionExercise
from sqlalchemy import inspect


def main():
    logging.basicConfig(level=settings.log_level)
    print("Starting periodization tables migration...")

    status = get_migration_status()
    if status["status"] == "error":
        print(f"✗ {status['message']} - run scripts/init_db.py first")
        sys.exit(1)

    migrations = auto_migrate()
    for migration in migrations:
        print(f"  - {migration}")

    # Verify tables were created
    with get_db() as db:
        inspector = inspect(db.bind)
        tables = inspector.get_table_names()

        for table in PERIODIZATION_TABLES:
            if table in tables:
                print(f"✓ Table '{table}' exists")
            else:
                print(f"✗ Table '{table}' missing!")

        # Count existing records
        active_count = db.query(Mesocycle).filter(Mesocycle.status == "active").count()
        mesocycle_count = db.query(Mesocycle).count()
        session_count = db.query(MesocycleSession).count()
        exercise_count = db.query(MesocycleSessionExercise).count()

        print(f"\nCurrent record counts:")
        print(f"  - Mesocycle: {mesocycle_count} ({active_count} active)")
        print(f"  - MesocycleSession: {session_count}")
        print(f"  - MesocycleSessionExercise: {exercise_count}")

    print("\nMigration complete!")


if __name__ == "__main__":
    main()
