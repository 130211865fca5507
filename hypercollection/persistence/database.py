"""
hypercollection database engine and session handling using sqlalchemy
"""

import logging
from typing import Any, Dict, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from sqlalchemy.pool import StaticPool


DEFAULT_DATABASE_URL: str = "sqlite://"
PRINT_SQLITE_WARNING: bool = True

Base = declarative_base()
_engine: Optional[Engine] = None
_session_factory: Optional[sessionmaker] = None
logger = logging.getLogger(__name__)


def _is_in_memory(database_url: str) -> bool:
    return database_url == "sqlite://" or ":memory:" in database_url


def init(database_url: str, echo: bool = True, create_all: bool = True):
    """
    Set up the engine and the session factory for the given database

    Call it once at program startup, before any request touches the
    database. Sessions requested without a prior call fall back to a
    private in-memory SQLite database and log a warning.

    :param database_url: SQLAlchemy connection URL of the database
    :param echo: switch to log every emitted SQL statement
    :param create_all: switch to create missing tables of all known models
    """

    global _engine, _session_factory
    options: Dict[str, Any] = {}
    if database_url.startswith("sqlite:"):
        options["connect_args"] = {"check_same_thread": False}
        if _is_in_memory(database_url):
            # all connections need to share the single in-memory database
            options["poolclass"] = StaticPool
            logger.warning("Using an in-memory SQLite database, no data will survive a restart.")
        elif PRINT_SQLITE_WARNING:
            logger.warning(f"SQLite at {database_url!r} should only be used for development and tests.")

    _engine = create_engine(database_url, echo=echo, **options)
    if create_all:
        Base.metadata.create_all(bind=_engine)
    _session_factory = sessionmaker(autoflush=False, bind=_engine)


def _ensure_initialized():
    if _engine is None or _session_factory is None:
        logger.warning(
            f"The database was used before calling 'init', falling back to {DEFAULT_DATABASE_URL!r}. "
            "Collections stored there are lost on shutdown."
        )
        init(DEFAULT_DATABASE_URL)


def get_engine() -> Engine:
    _ensure_initialized()
    return _engine


def get_new_session() -> Session:
    _ensure_initialized()
    return _session_factory()
