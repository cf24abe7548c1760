"""Optional sync status store backed by SQLAlchemy.

Public API:
    # Database initialization and session management
    - init_database(database_url: str) -> None
    - get_session() -> ContextManager[Session]
    - close_database() -> None

    # Repository
    - SyncStatusRepository: last sync outcome per job

Example usage:
    >>> from njgit.persistence import init_database, get_session, SyncStatusRepository
    >>>
    >>> init_database("sqlite:///./data/njgit.db")
    >>> with get_session() as session:
    ...     statuses = SyncStatusRepository(session).get_all()
"""

from .database import close_database, get_session, init_database, is_initialized
from .exceptions import DatabaseConnectionError, DataIntegrityError, PersistenceError
from .repositories import SyncStatusRepository

__all__ = [
    "init_database",
    "get_session",
    "close_database",
    "is_initialized",
    "SyncStatusRepository",
    "PersistenceError",
    "DatabaseConnectionError",
    "DataIntegrityError",
]
