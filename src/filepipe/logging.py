"""Package logger. One stream handler on ``filepipe``; child loggers propagate to it."""
from __future__ import annotations

import logging
import uuid

from filepipe.config import settings

_RUN_ID = uuid.uuid4().hex[:12]


def get_run_id() -> str:
    """Identifier of this process, stamped on every log line."""
    return _RUN_ID


class _RunIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.run_id = _RUN_ID
        return True


def _configure() -> logging.Logger:
    log = logging.getLogger("filepipe")
    if not any(getattr(h, "_filepipe", False) for h in log.handlers):
        handler = logging.StreamHandler()
        handler._filepipe = True
        handler.addFilter(_RunIdFilter())
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s %(levelname)s [%(run_id)s] %(name)s: %(message)s"
            )
        )
        log.addHandler(handler)
    log.setLevel(settings.LOG_LEVEL.upper())
    return log


logger = _configure()
