from __future__ import annotations

import logging

from spiceledger.core.config import get_settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_configured = False


def configure_logging(level: str | None = None) -> None:
    global _configured
    if _configured:
        return

    resolved = (level or get_settings().log_level).upper()
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    root = logging.getLogger("spiceledger")
    root.setLevel(resolved)
    root.addHandler(handler)
    _configured = True
