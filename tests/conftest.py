"""
Shared fixtures: an in-memory SQLite database per test
"""
import pytest
from sqlalchemy import event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from src.database.database import build_engine, init_db
from src.database.models import User


@pytest.fixture
def engine():
    """Fresh in-memory database with all tables"""
    engine = build_engine("sqlite://", poolclass=StaticPool)
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    """Session bound to the in-memory database"""
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def user(db):
    user = User(name="Test User", email="test@example.com")
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def other_user(db):
    user = User(name="Other User", email="other@example.com")
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def write_log(engine):
    """Records every INSERT/UPDATE/DELETE statement as (verb, table)"""
    writes = []

    def record(conn, cursor, statement, parameters, context, executemany):
        words = statement.strip().split()
        verb = words[0].upper() if words else ""
        if verb == "INSERT":
            table = words[2]
        elif verb == "UPDATE":
            table = words[1]
        elif verb == "DELETE":
            table = words[2]
        else:
            return
        writes.append((verb, table.strip('"')))

    event.listen(engine, "before_cursor_execute", record)
    yield writes
    event.remove(engine, "before_cursor_execute", record)
