"""Logging configuration helpers."""

import logging

# Kept at WARNING or above so request lines stay out of the log.
_QUIET_LOGGERS = ("httpx", "httpcore", "hpack")


def configure_logging(level: int | str = logging.INFO) -> None:
    """Configure the food_catalog logger and quiet the HTTP client loggers.

    ``level`` accepts a number or a level name such as ``"debug"``.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logger = logging.getLogger("food_catalog")
    logger.setLevel(level)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s: %(name)s: %(message)s")
    )
    logger.addHandler(handler)
    logger.propagate = False
