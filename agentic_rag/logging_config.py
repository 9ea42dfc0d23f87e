"""Process-wide logging setup for the API server."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str | int = "INFO") -> None:
    """Install a single stream handler on the ``agentic_rag`` logger.

    Safe to call more than once; subsequent calls only update the level.
    """
    logger = logging.getLogger("agentic_rag")
    logger.setLevel(level)
    if not any(getattr(h, "_agentic_rag", False) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._agentic_rag = True  # type: ignore[attr-defined]
        logger.addHandler(handler)
