# floatvid/common/logging.py
from __future__ import annotations

import logging

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_logger(name: str = "floatvid", level: int | str | None = None) -> logging.Logger:
    """
    Return a logger that plays nice with Uvicorn if running under it.
    If no handlers are set, we add a basicConfig once.
    """
    logger = logging.getLogger(name)
    if not logging.getLogger().handlers and not logger.handlers:
        logging.basicConfig(level=logging.INFO, format=_FORMAT)
    if level is not None:
        logger.setLevel(level)
    return logger


def configure_logging(level: int | str = logging.INFO) -> None:
    """Root logging for the CLI: one stream handler, uvicorn's access log quieted."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    logging.basicConfig(level=level, format=_FORMAT, force=True)
    logging.getLogger("floatvid").setLevel(level)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
