from __future__ import annotations

import logging


_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str | int = "INFO") -> None:
    """Configure root logging once for the whole process.

    Unknown level names fall back to INFO. httpx request lines are only shown
    at DEBUG since the backend client already logs its own calls.
    """
    if isinstance(level, str):
        resolved = logging.getLevelName(level.strip().upper())
        if not isinstance(resolved, int):
            resolved = logging.INFO
    else:
        resolved = level
    logging.basicConfig(level=resolved, format=_FORMAT)
    logging.getLogger().setLevel(resolved)
    logging.getLogger("httpx").setLevel(max(resolved, logging.WARNING))
    logging.getLogger("httpcore").setLevel(max(resolved, logging.WARNING))
