"""
Error taxonomy for the periodization engine
"""

# Postgres "undefined table" and PostgREST "table not in schema cache"
MISSING_TABLE_ERROR_CODES = {"42P01", "PGRST205"}

MISSING_TABLE_PHRASES = ("no such table", "does not exist", "could not find the table")

PERIODIZATION_TABLE_NAMES = ("mesocycles", "mesocycle_sessions")

MISSING_TABLES_MESSAGE = "Periodization tables are missing. Apply the latest migration first."


class PeriodizationError(Exception):
    """Base class for engine errors"""


class ValidationError(PeriodizationError):
    """Input rejected before any write"""


class NotFoundError(PeriodizationError):
    """Mesocycle or session does not exist or belongs to another user"""


class BackingStoreUnavailable(PeriodizationError):
    """The periodization tables have not been provisioned"""

    def __init__(self, message: str = MISSING_TABLES_MESSAGE):
        super().__init__(message)


class WriteFailure(PeriodizationError):
    """A step of a multi-step write sequence failed"""


def is_missing_table_error(error: BaseException) -> bool:
    """
    Detect a store error caused by absent periodization tables.

    Matches driver error codes (psycopg2 ``pgcode``, PostgREST ``code``) or a
    "relation not found" message naming one of the periodization tables.
    """
    if error is None:
        return False

    orig = getattr(error, "orig", None) or error
    code = getattr(orig, "pgcode", None) or getattr(orig, "code", None)
    if code in MISSING_TABLE_ERROR_CODES:
        return True

    message = str(orig).lower()
    return any(phrase in message for phrase in MISSING_TABLE_PHRASES) and any(
        table in message for table in PERIODIZATION_TABLE_NAMES
    )
