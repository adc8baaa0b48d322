"""
Database connection and session management
"""
import logging

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from contextlib import contextmanager
from config import settings
from .models import Base

logger = logging.getLogger(__name__)


def build_engine(database_url: str = None, **kwargs):
    """Create an engine for ``database_url`` (defaults to the configured store)"""
    database_url = database_url or settings.database_url
    if database_url.startswith("sqlite"):
        # Sessions may be used from worker threads of the UI server
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    return create_engine(database_url, **kwargs)


engine = build_engine()

# Session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(bind=None):
    """Create every table of the training-program schema that does not exist yet"""
    bind = bind or engine
    Base.metadata.create_all(bind=bind)
    logger.info(f"Tables ready: {', '.join(Base.metadata.tables.keys())}")


@contextmanager
def get_db() -> Session:
    """
    Unit-of-work scope: commits when the block succeeds, rolls back otherwise.

    Usage:
        with get_db() as db:
            program = MesocycleLifecycleManager(db).get_active_program(user_id)
    """
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
