import logging
from typing import Optional

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.engine.url import make_url
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from vetclinic.core.exceptions import ConflictError

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(database_url: str, echo: bool = False) -> Engine:
    """Create an engine suited to the database behind ``database_url``.

    PostgreSQL gets a production pool. SQLite gets foreign key enforcement,
    and in-memory SQLite a single shared connection so every session sees
    the same database.
    """
    url = make_url(database_url)

    if url.drivername.startswith("postgres"):
        engine = create_engine(
            database_url,
            pool_size=10,
            max_overflow=20,
            pool_pre_ping=True,
            pool_recycle=3600,
            connect_args={"application_name": "vetclinic", "connect_timeout": 10},
            echo=echo,
        )
    elif url.drivername.startswith("sqlite"):
        if url.database in (None, "", ":memory:"):
            engine = create_engine(
                database_url,
                echo=echo,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        else:
            engine = create_engine(
                database_url, echo=echo, connect_args={"check_same_thread": False}
            )
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    else:
        engine = create_engine(database_url, echo=echo)

    logger.info(
        "Database engine created",
        extra={"context": {"dialect": engine.dialect.name}},
    )
    return engine


class Database:
    """Owns the engine and the session factory for one application."""

    def __init__(self, database_url: str, echo: bool = False) -> None:
        self.engine = build_engine(database_url, echo=echo)
        self.SessionLocal = sessionmaker(
            bind=self.engine, autoflush=False, expire_on_commit=False
        )

    def session(self) -> Session:
        return self.SessionLocal()

    def create_tables(self) -> None:
        """Create all tables in database (idempotent)."""
        # Import models so Base.metadata is populated
        from vetclinic.db import base  # noqa: F401

        Base.metadata.create_all(bind=self.engine)

    def ping(self) -> bool:
        """Return True when the database answers a trivial query."""
        try:
            with self.engine.connect() as connection:
                connection.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            logger.error(f"Database ping failed: {e}")
            return False
        return True

    def dispose(self) -> None:
        self.engine.dispose()


class UnitOfWork:
    """Transaction boundary for multi-step writes.

    Commits when the block exits cleanly and rolls back on any exception.
    Integrity violations are rolled back and re-raised as ConflictError so
    raw database text never reaches a caller. Repositories only flush.

    Usage:
        with uow:
            repo.create(...)
            other_repo.update(...)
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def __enter__(self) -> "UnitOfWork":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc_type is None:
            try:
                self.session.commit()
            except IntegrityError as e:
                self.session.rollback()
                self._log_conflict(e)
                raise ConflictError() from e
            return False

        self.session.rollback()
        if issubclass(exc_type, IntegrityError):
            self._log_conflict(exc)
            raise ConflictError() from exc
        return False

    @staticmethod
    def _log_conflict(error: Optional[BaseException]) -> None:
        logger.warning(
            "Integrity violation, transaction rolled back",
            extra={"context": {"error_type": type(error).__name__}},
        )
