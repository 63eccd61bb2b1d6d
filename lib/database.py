# =============================================================================
# lib/database.py - Database Connector
# =============================================================================
# Binds the "AppDbContext" connection string to SQLAlchemy.
#
# - DbContextOptions: parsed connection string -> PostgreSQL URL + engine options
# - AppDbContext: Session subclass that remembers its connection string
# - configure_database(): runtime registration on a FastAPI app
# - get_db_context(): request-scoped dependency (one context per request)
#
# Connection strings may be SQLAlchemy URLs or keyword strings:
#   postgresql://app:secret@db:5432/app
#   Host=db;Port=5432;Database=app;Username=app;Password=secret
#
# Usage:
#   @router.get("/items")
#   def list_items(db: AppDbContext = Depends(get_db_context)):
#       return db.scalars(select(Item)).all()
# =============================================================================

from __future__ import annotations

import logging
from typing import Any, Iterator

from fastapi import FastAPI, Request
from sqlalchemy import Engine, create_engine, text
from sqlalchemy.engine import URL, make_url
from sqlalchemy.exc import ArgumentError, SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import NullPool

from app.config import AppSettings
from app.exceptions import ConnectionStringNotFoundError, InvalidConnectionStringError

logger = logging.getLogger(__name__)

APP_DB_CONTEXT = "AppDbContext"
DRIVER_NAME = "postgresql+psycopg2"

# Keyword aliases accepted in "Key=Value;..." connection strings.
# Keys are compared lower-cased with spaces and underscores removed.
_URL_KEYWORDS = {
    "host": "host",
    "server": "host",
    "port": "port",
    "database": "database",
    "db": "database",
    "username": "username",
    "userid": "username",
    "user": "username",
    "uid": "username",
    "password": "password",
    "pwd": "password",
}

_QUERY_KEYWORDS = {
    "sslmode": "sslmode",
    "timeout": "connect_timeout",
    "applicationname": "application_name",
}

_SSL_MODES = {
    "disable": "disable",
    "allow": "allow",
    "prefer": "prefer",
    "require": "require",
    "verifyca": "verify-ca",
    "verifyfull": "verify-full",
}


class Base(DeclarativeBase):
    """Declarative base for ORM entities; migration tooling reads Base.metadata."""


# =============================================================================
# Connection String Parsing
# =============================================================================

def _normalize_key(key: str) -> str:
    return key.strip().lower().replace(" ", "").replace("_", "")


def _parse_url(connection_string: str, name: str) -> URL:
    try:
        url = make_url(connection_string)
    except ArgumentError as e:
        raise InvalidConnectionStringError(name, str(e)) from e

    backend = url.get_backend_name()
    if backend not in ("postgres", "postgresql"):
        raise InvalidConnectionStringError(name, f"unsupported database '{backend}'")
    if url.drivername in ("postgres", "postgresql"):
        url = url.set(drivername=DRIVER_NAME)
    return url


def _parse_keywords(connection_string: str, name: str) -> tuple[URL, dict[str, Any]]:
    url_parts: dict[str, Any] = {}
    query: dict[str, str] = {}
    engine_options: dict[str, Any] = {}

    for segment in connection_string.split(";"):
        if not segment.strip():
            continue
        key, sep, value = segment.partition("=")
        if not sep:
            raise InvalidConnectionStringError(name, f"expected Key=Value, got '{segment.strip()}'")
        key = _normalize_key(key)
        value = value.strip()

        if key in _URL_KEYWORDS:
            url_parts[_URL_KEYWORDS[key]] = value
        elif key == "sslmode":
            mode = _SSL_MODES.get(_normalize_key(value).replace("-", ""))
            if mode is None:
                raise InvalidConnectionStringError(name, f"unknown SSL Mode '{value}'")
            query["sslmode"] = mode
        elif key in _QUERY_KEYWORDS:
            query[_QUERY_KEYWORDS[key]] = value
        elif key in ("maximumpoolsize", "maxpoolsize"):
            engine_options["pool_size"] = _int_value(value, segment, name)
        elif key in ("minimumpoolsize", "minpoolsize"):
            # QueuePool opens connections lazily; there is no minimum to honour
            _int_value(value, segment, name)
        elif key == "pooling":
            if value.lower() == "false":
                engine_options["poolclass"] = NullPool
        else:
            logger.warning(f"Ignoring unsupported connection string keyword '{segment.partition('=')[0].strip()}'")

    if not url_parts.get("host"):
        raise InvalidConnectionStringError(name, "Host is required")
    if not url_parts.get("database"):
        raise InvalidConnectionStringError(name, "Database is required")
    if "port" in url_parts:
        url_parts["port"] = _int_value(url_parts["port"], "Port", name)

    if engine_options.get("poolclass") is NullPool:
        engine_options.pop("pool_size", None)

    url = URL.create(DRIVER_NAME, query=query, **url_parts)
    return url, engine_options


def _int_value(value: str, segment: str, name: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise InvalidConnectionStringError(name, f"'{segment.strip()}' is not an integer") from None


def parse_connection_string(connection_string: str, name: str = APP_DB_CONTEXT) -> tuple[URL, dict[str, Any]]:
    """
    Turn a connection string into a SQLAlchemy URL and engine options.

    Args:
        connection_string: URL or Key=Value;... string
        name: Connection string name, for error messages

    Returns:
        Tuple of (url, engine keyword arguments)

    Raises:
        InvalidConnectionStringError: If the string cannot be interpreted
    """
    stripped = connection_string.strip()
    if "://" in stripped:
        return _parse_url(stripped, name), {}
    return _parse_keywords(stripped, name)


# =============================================================================
# Context
# =============================================================================

class DbContextOptions:
    """Connection string plus everything derived from it."""

    def __init__(self, connection_string: str, name: str = APP_DB_CONTEXT):
        self.connection_string = connection_string
        self.name = name
        self.url, self.engine_options = parse_connection_string(connection_string, name)

    @property
    def safe_url(self) -> str:
        """URL with the password masked, for logs."""
        return self.url.render_as_string(hide_password=True)

    def create_engine(self) -> Engine:
        # Nothing connects until the first query
        return create_engine(self.url, pool_pre_ping=True, **self.engine_options)

    def __repr__(self) -> str:
        return f"DbContextOptions(name={self.name!r}, url={self.safe_url!r})"


class AppDbContext(Session):
    """
    Unit of work against the application database.

    Created per request by the runtime factory, or once per invocation by
    AppDbContextFactory for migration tooling.
    """

    def __init__(self, context_options: DbContextOptions, bind: Engine | None = None, **kwargs: Any):
        self.context_options = context_options
        super().__init__(bind=bind if bind is not None else context_options.create_engine(), **kwargs)

    @property
    def connection_string(self) -> str:
        return self.context_options.connection_string


# =============================================================================
# Runtime Registration
# =============================================================================

def get_connection_string(settings: AppSettings, name: str = APP_DB_CONTEXT) -> str:
    """
    Read a named connection string.

    Raises:
        ConnectionStringNotFoundError: If it is missing or blank
    """
    connection_string = settings.connection_string(name)
    if connection_string is None:
        raise ConnectionStringNotFoundError(name)
    return connection_string


def configure_database(app: FastAPI, settings: AppSettings) -> None:
    """
    Register the AppDbContext factory on the app.

    Everything is validated before app.state is touched, so a failure
    leaves no partial registration behind.
    """
    options = DbContextOptions(get_connection_string(settings))
    engine = options.create_engine()

    app.state.db_context_options = options
    app.state.db_engine = engine
    app.state.db_context_factory = sessionmaker(
        bind=engine,
        class_=AppDbContext,
        context_options=options,
        expire_on_commit=False,
    )
    logger.info(f"Registered {options.name} for {options.safe_url}")


def dispose_database(app: FastAPI) -> None:
    """Close pooled connections on shutdown."""
    engine = getattr(app.state, "db_engine", None)
    if engine is not None:
        engine.dispose()
        logger.info("Database engine disposed")


def get_db_context(request: Request) -> Iterator[AppDbContext]:
    """
    FastAPI dependency that yields a request-scoped AppDbContext.

    The context is always closed when the request finishes. Handlers own
    their transaction boundaries (commit / rollback).
    """
    db = request.app.state.db_context_factory()
    try:
        yield db
    finally:
        db.close()


def check_database(engine: Engine) -> str:
    """Run a trivial query. Returns "healthy" or a short failure description."""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return "healthy"
    except SQLAlchemyError as e:
        return f"unhealthy: {str(e)[:50]}"
