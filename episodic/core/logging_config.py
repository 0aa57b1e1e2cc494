"""
Process-wide logging setup.

Modules log through ``logging.getLogger(__name__)``; this only decides the
root level and line format once at startup.
"""
import logging

from episodic.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Apply LOG_LEVEL to the root logger. Safe to call more than once."""
    resolved = (level or settings.LOG_LEVEL).upper()
    logging.basicConfig(level=resolved, format=LOG_FORMAT)
    logging.getLogger().setLevel(resolved)
    # SQL echo is handled by the engine in dev; keep the library logger quiet.
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
