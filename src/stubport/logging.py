import sys
from typing import Any, TextIO

from loguru import logger

__all__ = ["LOG_FORMAT", "configure_logging"]

LOG_FORMAT = (
    "<green>{time:HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)


def configure_logging(level: str | None = None, sink: TextIO | Any = None) -> None:
    """
    Route stubport's records to a sink with the given level.

    stubport is silent until this is called, so a library user's own loguru
    setup isn't flooded with interception chatter.

    Args:
        level: Logging level (TRACE, DEBUG, INFO, WARNING, ...). Defaults to
            ``Config.log_level``.
        sink: Anything loguru accepts as a sink; stderr by default.
    """
    if level is None:
        from stubport.models.config import Config

        level = Config().log_level

    logger.remove()
    logger.add(sys.stderr if sink is None else sink, level=level.upper(), format=LOG_FORMAT)
    logger.enable("stubport")
