from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite:///./nftdeploy.db"

_engine: Engine | None = None
# engines whose ledger tables have already been created in this process
_initialized: set[int] = set()


def database_url() -> str:
    return os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL)


def build_engine(url: str) -> Engine:
    if url.startswith("sqlite"):
        return create_engine(
            url,
            echo=False,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(url, echo=False)


def get_engine() -> Engine:
    """Return the ledger engine, created from ``DATABASE_URL`` on first use."""
    global _engine
    if _engine is None:
        _engine = build_engine(database_url())
        logger.debug("Opened deployment ledger at %s", _engine.url)
    return _engine


def dispose_engine() -> None:
    """Drop the cached engine so the next use re-reads ``DATABASE_URL``."""
    global _engine
    if _engine is not None:
        _initialized.discard(id(_engine))
        _engine.dispose()
    _engine = None


def init_db(engine: Engine) -> None:
    # Ensure models are imported before creating tables.
    import nftdeploy.models  # noqa: F401

    SQLModel.metadata.create_all(engine)
    _initialized.add(id(engine))


@contextmanager
def session_scope(engine: Engine | None = None) -> Iterator[Session]:
    """Open a ledger session, rolling back whatever is uncommitted on error."""
    active = engine or get_engine()
    if id(active) not in _initialized:
        init_db(active)
    session = Session(active)
    try:
        yield session
    except BaseException:
        session.rollback()
        raise
    finally:
        session.close()
