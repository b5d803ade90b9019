"""Engine and session setup for the campaign database.

SQLite is the default backend. It only enforces the ON DELETE CASCADE
rules on campaigns, locations and sessions when foreign keys are switched
on per connection, so every SQLite engine gets that pragma.
"""

from contextlib import contextmanager
from typing import Generator

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import Session, sessionmaker

from spatialdm.config import settings
from spatialdm.database.models.base import Base


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_engine(url: str, echo: bool = False) -> Engine:
    """Create an engine for url.

    SQLite engines enforce foreign keys and allow use from any thread.
    """
    if url.startswith("sqlite"):
        engine = create_engine(url, echo=echo, connect_args={"check_same_thread": False})
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine
    return create_engine(url, echo=echo, pool_pre_ping=True)


engine = create_db_engine(settings.database_url, echo=settings.debug)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)


def init_db(bind: Engine | None = None) -> None:
    """Create all tables on bind, or on the configured engine.

    Meant for local play and tests; deployed databases go through Alembic.
    """
    # Register every model with Base before create_all
    from spatialdm.database import models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)


@contextmanager
def get_db_session() -> Generator[Session, None, None]:
    """Session that commits on success and rolls back on error.

    Usage:
        with get_db_session() as db:
            location = db.get(Location, location_id)
    """
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
