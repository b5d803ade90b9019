"""Base manager class with common patterns."""

from typing import TypeVar

from sqlalchemy.orm import Session

from spatialdm.exceptions import NotFoundError

T = TypeVar("T")


class BaseManager:
    """Base class for database-backed components.

    Provides common patterns:
    - Database session access (injected, never global)
    - Lookup-or-raise for ids that must resolve
    """

    def __init__(self, db: Session) -> None:
        """Initialize manager with a database session.

        Args:
            db: SQLAlchemy database session
        """
        self.db = db

    def _get_or_raise(self, model: type[T], identifier: str, kind: str) -> T:
        """Fetch a row by primary key or raise NotFoundError."""
        instance = self.db.get(model, identifier)
        if instance is None:
            raise NotFoundError(kind, identifier)
        return instance
