from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session, sessionmaker

from villa_booking.core.config import get_settings
from villa_booking.core.errors import ServiceUnavailableError

logger = logging.getLogger(__name__)


def make_engine(database_url: str) -> Engine:
    """Create an engine whose connections never wait on the datastore indefinitely."""
    settings = get_settings()
    url = make_url(database_url)

    connect_args: dict = {}
    engine_kwargs: dict = {"pool_pre_ping": True}
    if url.get_backend_name() == "sqlite":
        # busy timeout while another writer holds the database lock
        connect_args = {"check_same_thread": False, "timeout": settings.db_pool_timeout_seconds}
    else:
        connect_args = {
            "connect_timeout": settings.db_pool_timeout_seconds,
            "options": f"-c statement_timeout={settings.db_statement_timeout_ms}",
        }
        engine_kwargs["pool_timeout"] = settings.db_pool_timeout_seconds

    return create_engine(url, connect_args=connect_args, **engine_kwargs)


engine = make_engine(get_settings().database_url)
SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@contextmanager
def translate_db_errors(db: Session | None = None) -> Iterator[None]:
    """Turn connection loss and timeouts into a retryable ServiceUnavailableError."""
    try:
        yield
    except (OperationalError, PoolTimeoutError) as exc:
        if db is not None:
            db.rollback()
        logger.warning("Datastore unavailable: %s", exc)
        raise ServiceUnavailableError() from exc
