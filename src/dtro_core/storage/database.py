"""Engine and session handling for the SQL storage backend.

The DTRO table lives in PostgreSQL in production. Tests and local runs
use SQLite, where an in-memory database only survives as long as its one
connection, so that case is pinned to a single shared connection.
"""

import logging
import os
from contextlib import contextmanager
from typing import Any, Dict, Generator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from .models import Base


logger = logging.getLogger(__name__)


def resolve_database_url(database_url: Optional[str] = None) -> str:
    """
    Pick the database URL for the DTRO store.

    An explicit URL wins, then ``DTRO_DATABASE_URL``. Otherwise a
    PostgreSQL URL is assembled from ``POSTGRES_HOST``, ``POSTGRES_PORT``,
    ``POSTGRES_DB``, ``POSTGRES_USER`` and ``POSTGRES_PASSWORD``.
    """
    if database_url:
        return database_url
    from_env = os.environ.get("DTRO_DATABASE_URL")
    if from_env:
        return from_env

    host = os.environ.get("POSTGRES_HOST", "localhost")
    port = int(os.environ.get("POSTGRES_PORT", "5432"))
    database = os.environ.get("POSTGRES_DB", "dtro")
    user = os.environ.get("POSTGRES_USER", "postgres")
    password = os.environ.get("POSTGRES_PASSWORD", "postgres")
    return f"postgresql://{user}:{password}@{host}:{port}/{database}"


def engine_options(database_url: str, pool_size: int = 5, max_overflow: int = 10) -> Dict[str, Any]:
    """Keyword arguments for ``create_engine`` suited to the URL's backend."""
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite":
        return {"pool_size": pool_size, "max_overflow": max_overflow, "pool_pre_ping": True}

    # FastAPI runs handlers in a threadpool.
    options: Dict[str, Any] = {"connect_args": {"check_same_thread": False}}
    if url.database in (None, "", ":memory:"):
        options["poolclass"] = StaticPool
    return options


class DatabaseManager:
    """Owns the engine and hands out transactional sessions."""

    def __init__(
        self,
        database_url: Optional[str] = None,
        pool_size: int = 5,
        max_overflow: int = 10,
        echo: bool = False,
    ):
        self._database_url = resolve_database_url(database_url)
        self._options = engine_options(self._database_url, pool_size, max_overflow)
        self._echo = echo
        self._engine: Optional[Engine] = None

    @property
    def database_url(self) -> str:
        return self._database_url

    @property
    def engine(self) -> Engine:
        """Engine for the configured URL, created on first use."""
        if self._engine is None:
            self._engine = create_engine(self._database_url, echo=self._echo, **self._options)
        return self._engine

    @contextmanager
    def get_session(self) -> Generator[Session, None, None]:
        """
        Open a session that commits on success and rolls back on error.

        Yields:
            SQLAlchemy Session object.
        """
        session = Session(self.engine, expire_on_commit=False)
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def init_database(self) -> None:
        """Create the DTRO table and its indexes if they are missing."""
        Base.metadata.create_all(self.engine)
        logger.info(f"DTRO tables ready on {self.engine.dialect.name}")

    def close(self) -> None:
        """Dispose of the engine; the next use creates a fresh one."""
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
