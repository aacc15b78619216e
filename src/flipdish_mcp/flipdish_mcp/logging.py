"""Loguru logging configuration.

Call setup_logging() once at server startup to configure sinks.
All other modules simply do `from loguru import logger` and log normally.
uvicorn, starlette, httpx and the mcp SDK log through the standard library;
those records are forwarded into loguru so everything lands in one place.
"""

import logging
import sys
from pathlib import Path

from loguru import logger

# Log directory at project root
LOG_DIR = Path(__file__).resolve().parents[3] / "logs"

# Stdlib loggers that would otherwise keep their own handlers
_FORWARDED_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access", "mcp", "httpx")


class InterceptHandler(logging.Handler):
    """Send stdlib logging records to loguru, keeping the caller's location."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Walk back past the logging module so {name}:{function} point at the caller
        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging(level: str = "DEBUG", log_file: bool = True) -> None:
    """Configure loguru sinks and route stdlib logging into them.

    Args:
        level: Minimum log level (default DEBUG).
        log_file: Also write a rotating file under logs/ (default True).
    """
    # Remove the default stderr handler so we can reconfigure it
    logger.remove()

    # Sink 1: stderr, colored. MCP runs over SSE so stderr is free for logs.
    logger.add(
        sys.stderr,
        level=level,
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>",
    )

    # Sink 2: rotating log file, rotate every 3 hours, delete after 1 day
    if log_file:
        LOG_DIR.mkdir(parents=True, exist_ok=True)
        logger.add(
            LOG_DIR / "flipdish_mcp.log",
            level=level,
            rotation="3 hours",
            retention="1 day",
            format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} - {message}",
        )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name in _FORWARDED_LOGGERS:
        std_logger = logging.getLogger(name)
        std_logger.handlers = [InterceptHandler()]
        std_logger.propagate = False
