"""
Provisioning checks for the periodization tables
"""
from sqlalchemy import inspect
from .database import engine
from .models import Base
import logging

logger = logging.getLogger(__name__)

# Tables the periodization engine cannot run without, in dependency order
PERIODIZATION_TABLES = [
    "mesocycles",
    "mesocycle_sessions",
    "mesocycle_session_exercises",
]


def auto_migrate(bind=None):
    """
    Create any missing periodization tables.
    Safe to run multiple times - checks which tables exist before creating.
    """
    bind = bind or engine
    migrations = []

    inspector = inspect(bind)
    existing = set(inspector.get_table_names())

    missing = [Base.metadata.tables[name] for name in PERIODIZATION_TABLES if name not in existing]
    if not missing:
        return migrations

    try:
        Base.metadata.create_all(bind=bind, tables=missing)
    except Exception as e:
        logger.error(f"Failed to create periodization tables: {e}")
        raise

    for table in missing:
        migrations.append(f"Created {table.name}")
        logger.info(f"Migration: Created {table.name}")

    return migrations


def get_migration_status(bind=None):
    """Check whether the periodization tables are provisioned"""
    bind = bind or engine
    inspector = inspect(bind)
    existing = set(inspector.get_table_names())

    if "exercises" not in existing:
        return {"status": "error", "message": "Database not initialized"}

    missing = [name for name in PERIODIZATION_TABLES if name not in existing]

    if missing:
        return {
            "status": "needs_migration",
            "missing_tables": missing,
            "message": f"Missing {len(missing)} periodization tables",
        }

    return {"status": "up_to_date", "message": "All migrations applied"}
