"""Root logger configuration shared by the API, the CLI and Celery workers."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"


def setup_logging(settings: object) -> int:
    """Configure the root logger from ``settings.log_level``.

    Returns the resolved numeric level.  Safe to call repeatedly; existing
    root handlers are replaced so logs are not duplicated on reload.
    """
    level_name = str(getattr(settings, "log_level", "INFO") or "INFO").upper().strip()
    level = getattr(logging, level_name, logging.INFO)

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    root = logging.getLogger()
    root.handlers = []
    root.setLevel(level)
    root.addHandler(handler)

    # SQL echo is controlled by the engine, not by the root level.
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    return level
