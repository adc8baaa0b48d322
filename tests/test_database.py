"""
Unit tests for database models and provisioning checks
"""
import pytest
from datetime import date
from sqlalchemy.exc import IntegrityError
from sqlalchemy.pool import StaticPool

from src.database.auto_migrate import auto_migrate, get_migration_status
from src.database.database import build_engine
from src.database.models import Base, Exercise, Mesocycle, User


def _mesocycle(user_id, status="active"):
    return Mesocycle(
        user_id=user_id,
        name="Block",
        goal_focus="hypertrophy",
        protocol="custom",
        start_date=date(2026, 10, 1),
        duration_weeks=6,
        status=status,
    )


def test_create_user(db):
    """Test user creation"""
    user = User(name="Test User", email="test@example.com")
    db.add(user)
    db.commit()

    assert user.id is not None


def test_create_exercise_defaults(db):
    """Test exercise defaults"""
    exercise = Exercise(name="Goblet Squat", order=1)
    db.add(exercise)
    db.commit()

    assert exercise.exercise_type == "strength"
    assert exercise.is_static is False
    assert exercise.archetype_id is None


def test_single_active_mesocycle_index(db, user):
    """The store rejects a second active mesocycle for the same user"""
    db.add(_mesocycle(user.id))
    db.commit()

    db.add(_mesocycle(user.id))
    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()


def test_completed_mesocycles_are_not_constrained(db, user):
    """Any number of completed mesocycles can sit beside the active one"""
    db.add_all([_mesocycle(user.id, "completed"), _mesocycle(user.id, "completed"), _mesocycle(user.id)])
    db.commit()

    assert db.query(Mesocycle).filter(Mesocycle.user_id == user.id).count() == 3


def test_migration_status_and_auto_migrate():
    """Missing periodization tables are reported, then created"""
    engine = build_engine("sqlite://", poolclass=StaticPool)
    assert get_migration_status(engine)["status"] == "error"

    base_tables = [Base.metadata.tables[name] for name in ("users", "movement_archetypes", "exercises")]
    Base.metadata.create_all(bind=engine, tables=base_tables)

    status = get_migration_status(engine)
    assert status["status"] == "needs_migration"
    assert status["missing_tables"] == ["mesocycles", "mesocycle_sessions", "mesocycle_session_exercises"]

    migrations = auto_migrate(engine)
    assert len(migrations) == 3
    assert get_migration_status(engine)["status"] == "up_to_date"

    # Second run is a no-op
    assert auto_migrate(engine) == []
    engine.dispose()
