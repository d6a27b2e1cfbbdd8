"""
Loguru configuration.

Standard library logging (uvicorn, sqlalchemy) is intercepted and routed
through loguru so every record shares the same sinks.
"""
import logging
import os
import sys

from loguru import logger


LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE")
ENVIRONMENT = os.getenv("ENVIRONMENT", "development")

HUMAN_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)


class InterceptHandler(logging.Handler):
    """Intercept standard logging and redirect to Loguru"""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Walk out of the logging module so loguru reports the real caller
        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def configure_logging() -> None:
    logger.remove()

    serialize = ENVIRONMENT == "production"

    if serialize:
        logger.add(sys.stdout, level=LOG_LEVEL, serialize=True)
    else:
        logger.add(sys.stdout, format=HUMAN_FORMAT, level=LOG_LEVEL, colorize=True)

    if LOG_FILE:
        logger.add(
            LOG_FILE,
            rotation="00:00",
            retention="30 days",
            level=LOG_LEVEL,
            serialize=serialize,
        )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)

    for logger_name in ("uvicorn", "uvicorn.access", "uvicorn.error", "sqlalchemy.engine"):
        logging.getLogger(logger_name).handlers = [InterceptHandler()]

    logger.info(f"Logging configured: level={LOG_LEVEL}, json={serialize}")
