"""Persistence layer for the property importer (SQLAlchemy).

Public API:
    # Database initialization and session management
    - init_database(database_url: str) -> None
    - get_session() -> ContextManager[Session]
    - close_database() -> None
    - get_engine() -> Engine

    # Repository classes
    - PropertyRepository: property rows; also the duplicate checker's lookup
    - PropertyImageRepository: image URLs per property
    - ImportJobRepository: import job bookkeeping

    # Exceptions
    - PersistenceError, DatabaseConnectionError, RecordNotFoundError, DataIntegrityError

Example usage:
    >>> from property_import.persistence import init_database, get_session, PropertyRepository
    >>> init_database("sqlite:///./data/property_import.db")
    >>> with get_session() as session:
    ...     rows = PropertyRepository(session).find_by_phone("+919876543210")
"""

from .database import close_database, get_engine, get_session, init_database
from .exceptions import (
    DatabaseConnectionError,
    DataIntegrityError,
    PersistenceError,
    RecordNotFoundError,
)
from .repositories import ImportJobRepository, PropertyImageRepository, PropertyRepository

__all__ = [
    "init_database",
    "get_session",
    "close_database",
    "get_engine",
    "PropertyRepository",
    "PropertyImageRepository",
    "ImportJobRepository",
    "PersistenceError",
    "DatabaseConnectionError",
    "RecordNotFoundError",
    "DataIntegrityError",
]
