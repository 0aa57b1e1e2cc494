"""
Database engine and sessions.

One engine per process, built from settings.DATABASE_URL at import and
disposed by the app lifespan (main.py). Request handlers get a session via
``get_db``; ActivityRecorder opens its own short-lived sessions from
``SessionLocal`` so activity writes never share a request's transaction.
"""
import logging
from collections.abc import Iterator
from typing import Any

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

from episodic.core.config import settings

logger = logging.getLogger(__name__)


def build_engine(url: str, **overrides: Any) -> Engine:
    """Create an engine; pool sizing only applies to server databases."""
    options: dict[str, Any] = {"pool_pre_ping": True, "echo": settings.is_dev}
    if not url.startswith("sqlite"):
        options.update(pool_size=10, max_overflow=20)
    options.update(overrides)
    return create_engine(url, **options)


def make_session_factory(bind: Engine) -> sessionmaker:
    # DocumentStore hands rows back after commit, so they must stay loaded
    return sessionmaker(bind=bind, autoflush=False, expire_on_commit=False)


engine = build_engine(settings.DATABASE_URL)
SessionLocal = make_session_factory(engine)


def get_db() -> Iterator[Session]:
    """FastAPI dependency: one session per request, closed afterwards."""
    with SessionLocal() as db:
        yield db


def dispose_engine() -> None:
    """Close every pooled connection. Called once on application shutdown."""
    logger.info("Disposing database engine")
    engine.dispose()
