"""
Unit tests for store error classification
"""
import pytest
from types import SimpleNamespace
from sqlalchemy.exc import OperationalError, ProgrammingError

from src.periodization.errors import BackingStoreUnavailable, MISSING_TABLES_MESSAGE, is_missing_table_error


@pytest.mark.parametrize("error", [
    OperationalError("SELECT", {}, Exception("no such table: mesocycles")),
    ProgrammingError("SELECT", {}, Exception('relation "mesocycle_sessions" does not exist')),
    ProgrammingError("SELECT", {}, SimpleNamespace(pgcode="42P01")),
    Exception("Could not find the table 'public.mesocycles' in the schema cache"),
    SimpleNamespace(code="PGRST205"),
])
def test_missing_table_errors(error):
    assert is_missing_table_error(error)


@pytest.mark.parametrize("error", [
    None,
    OperationalError("SELECT", {}, Exception("no such table: workouts")),
    OperationalError("INSERT", {}, Exception("database is locked")),
    ValueError("mesocycles"),
])
def test_other_errors(error):
    assert not is_missing_table_error(error)


def test_backing_store_message():
    assert str(BackingStoreUnavailable()) == MISSING_TABLES_MESSAGE
