"""
Engine and session management for the streaming backend (SQLAlchemy 2.0).

Connection settings come from the environment:
- DATABASE_URL: a full SQLAlchemy URL (postgres:// is accepted as an alias of postgresql://)
- otherwise POSTGRES_URL (full URL or bare host[:port]) plus POSTGRES_USER,
  POSTGRES_PASSWORD, POSTGRES_DB and POSTGRES_PORT, as provided by the database container

SQLite URLs are accepted for local development and the test-suite.
"""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from typing import Generator, Optional

from fastapi import HTTPException
from sqlalchemy import create_engine, event
from sqlalchemy.engine import URL, Engine, make_url
from sqlalchemy.exc import ArgumentError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

logger = logging.getLogger(__name__)

_CONFIG_HINT = (
    "Set DATABASE_URL or provide POSTGRES_URL, POSTGRES_USER, POSTGRES_PASSWORD, "
    "POSTGRES_DB (and optionally POSTGRES_PORT)."
)


def _parse_url(raw: str) -> URL:
    if raw.startswith("postgres://"):
        raw = "postgresql://" + raw[len("postgres://") :]
    try:
        return make_url(raw)
    except ArgumentError as exc:
        raise RuntimeError(f"Invalid database URL: {exc}") from exc


def _split_host(value: str) -> tuple:
    host, _, port = value.strip().rpartition(":")
    if host and port.isdigit():
        return host, int(port)
    return value.strip(), None


def _postgres_url_from_parts() -> URL:
    """Assemble a psycopg2 URL from the POSTGRES_* variables."""
    base = os.getenv("POSTGRES_URL")
    if not base:
        raise RuntimeError(f"Database configuration missing. {_CONFIG_HINT}")

    port_env = os.getenv("POSTGRES_PORT", "")
    if "://" in base:
        parsed = _parse_url(base)
        host, port = parsed.host or "localhost", parsed.port
        user, password, database = parsed.username, parsed.password, parsed.database
    else:
        (host, port), user, password, database = _split_host(base), None, None, None

    user = os.getenv("POSTGRES_USER") or user
    password = os.getenv("POSTGRES_PASSWORD") or password
    database = os.getenv("POSTGRES_DB") or database
    if not (user and password and database):
        raise RuntimeError(f"Database configuration incomplete. {_CONFIG_HINT}")

    return URL.create(
        "postgresql+psycopg2",
        username=user,
        password=password,
        host=host,
        port=int(port_env) if port_env.isdigit() else (port or 5432),
        database=database,
    )


# PUBLIC_INTERFACE
def database_url() -> URL:
    """
    Resolve the database URL from the environment.

    Raises:
        RuntimeError: when neither DATABASE_URL nor a complete POSTGRES_* set is configured.
    """
    raw = os.getenv("DATABASE_URL")
    if raw:
        return _parse_url(raw)
    return _postgres_url_from_parts()


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


_ENGINE: Optional[Engine] = None
_SessionLocal: Optional[sessionmaker] = None


# PUBLIC_INTERFACE
def get_engine() -> Engine:
    """Return (and lazily create) the process-wide Engine."""
    global _ENGINE, _SessionLocal
    if _ENGINE is None:
        url = database_url()
        logger.info("db_engine_created: url=%s", url.render_as_string(hide_password=True))

        if url.get_backend_name() == "sqlite":
            # Handlers run in FastAPI's threadpool, so connections cross threads.
            engine = create_engine(url, connect_args={"check_same_thread": False})
            event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        else:
            engine = create_engine(url, pool_pre_ping=True)
        _ENGINE = engine
        _SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    return _ENGINE


# PUBLIC_INTERFACE
def init_db() -> None:
    """Create all tables that do not exist yet."""
    from src.music_api.models import Base

    Base.metadata.create_all(bind=get_engine())


# PUBLIC_INTERFACE
def reset_engine_for_tests() -> None:
    """Dispose the cached engine so the next call re-reads the environment."""
    global _ENGINE, _SessionLocal
    if _ENGINE is not None:
        _ENGINE.dispose()
    _ENGINE = None
    _SessionLocal = None


# PUBLIC_INTERFACE
@contextmanager
def get_db_session() -> Generator[Session, None, None]:
    """
    Unit of work: everything done inside one `with` block commits or rolls back together.

        with get_db_session() as db:
            ...
    """
    get_engine()
    db = _SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


# PUBLIC_INTERFACE
def db_session_dep() -> Generator[Session, None, None]:
    """
    FastAPI dependency for read handlers.

    Missing configuration and store outages surface as HTTP 503 rather than a
    generic 500.
    """
    try:
        with get_db_session() as db:
            yield db
    except RuntimeError as exc:
        raise HTTPException(
            status_code=503,
            detail={"error": "database_misconfigured", "message": str(exc), "hint": _CONFIG_HINT},
        )
    except SQLAlchemyError as exc:
        logger.error("db_session_failed: exc=%s", exc.__class__.__name__)
        raise HTTPException(
            status_code=503,
            detail={"error": "database_unavailable", "message": "Database connection/query failed."},
        )
