"""Persistence layer exceptions.

All status store exceptions inherit from PersistenceError so that callers
can treat the store as optional and catch its failures in one place.
"""


class PersistenceError(Exception):
    """Base exception for all persistence layer errors."""

    pass


class DatabaseConnectionError(PersistenceError):
    """Raised when database connection or initialization fails.

    Examples:
    - Invalid database URL format
    - Database file not accessible
    - Database driver not available
    """

    pass


class DataIntegrityError(PersistenceError):
    """Raised when a database constraint violation occurs."""

    pass
