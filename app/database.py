"""Database session management."""

from collections.abc import Generator
from typing import Any

from sqlalchemy import create_engine, event, update
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.orm.attributes import set_committed_value

from app.config import get_settings

settings = get_settings()
engine = create_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    connect_args={"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {},
)
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    """SQLite ignores ON DELETE CASCADE unless foreign keys are switched on per connection."""
    if type(dbapi_connection).__module__.startswith("sqlite3"):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


def get_db() -> Generator[Session, None, None]:
    """Yield a database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def update_columns(db: Session, record: Any, **fields: Any) -> None:
    """Write the given columns of a persisted record with a single UPDATE.

    Skips model validation entirely. The UPDATE commits on its own
    connection, so other pending changes in the session are neither written
    nor discarded. The in-memory record is synced to the written values
    without being marked dirty.
    """
    table = type(record).__table__
    with db.get_bind().begin() as connection:
        connection.execute(update(table).where(table.c.id == record.id).values(**fields))
    for name, value in fields.items():
        set_committed_value(record, name, value)
