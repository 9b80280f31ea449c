"""SQLAlchemy engine and session helpers shared by the storefront apps.

The connection URL is read from ``settings.DATABASE_URL``. PostgreSQL (via
``psycopg``) is the production target; SQLite URLs are accepted for local
development and tests, in which case an in-memory database is shared across
threads through a single static connection.
"""

import time
from contextlib import contextmanager

from sqlalchemy import create_engine, text
from sqlalchemy.orm import DeclarativeBase, Session
from sqlalchemy.pool import StaticPool

from . import settings


def _engine_kwargs(url: str) -> dict:
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in url or url.rstrip("/").endswith("sqlite:"):
            kwargs["poolclass"] = StaticPool
        return kwargs
    return {"pool_pre_ping": True}


engine = create_engine(settings.DATABASE_URL, **_engine_kwargs(settings.DATABASE_URL))


class Base(DeclarativeBase):
    pass


@contextmanager
def get_session():
    """Yield a SQLAlchemy session bound to the configured engine.

    The session is automatically closed on context exit.

    Yields:
        Session: Active SQLAlchemy session.
    """
    with Session(engine) as s:
        yield s


def init_db() -> None:
    """Create any missing tables for the registered models."""
    # models register themselves on Base.metadata when imported
    from .catalog import models  # noqa: F401

    Base.metadata.create_all(engine)


def wait_for_db(timeout: float = 30.0) -> None:
    """Block until the database accepts connections or ``timeout`` elapses.

    Raises:
        sqlalchemy.exc.OperationalError: If the database is still unreachable
            after ``timeout`` seconds.
    """
    deadline = time.time() + timeout
    while True:
        try:
            with engine.connect() as conn:
                conn.execute(text("select 1"))
            return
        except Exception:
            if time.time() > deadline:
                raise
            time.sleep(1)


def ping() -> bool:
    """Return True when a trivial query succeeds."""
    try:
        with engine.connect() as conn:
            conn.execute(text("select 1"))
        return True
    except Exception:
        return False
