"""Persistence layer exceptions.

All persistence exceptions inherit from PersistenceError so callers can
catch any database failure with a single except clause.
"""


class PersistenceError(Exception):
    """Base exception for all persistence layer errors."""

    pass


class DatabaseConnectionError(PersistenceError):
    """Raised when database connection or initialization fails.

    Examples:
    - Invalid database URL
    - Database file not accessible
    - Session requested before init_database()
    """

    pass


class RecordNotFoundError(PersistenceError):
    """Raised when a record the operation requires does not exist.

    Optional lookups return None (or an empty list) instead.
    """

    pass


class DataIntegrityError(PersistenceError):
    """Raised on a constraint violation (primary key, unique, foreign key, NOT NULL)."""

    pass
