import sys
from typing import Optional

import loguru

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"


def setup_logger(log_level: str = "INFO", log_file: Optional[str] = None):
    """
    Set up the logger with a console handler and an optional file handler.

    Args:
        log_level (str): The minimum level of logs to display on the console.
        log_file (str): The file to which logs should be written. Nothing is
            written to disk when omitted.
    """
    loguru.logger.remove()  # Remove default handler

    # Console logger
    loguru.logger.add(
        sys.stderr,
        level=log_level,
        format=CONSOLE_FORMAT,
        colorize=True,
    )

    # File logger
    if log_file:
        loguru.logger.add(
            log_file,
            level="DEBUG",
            format=FILE_FORMAT,
            rotation="10 MB",
            retention="7 days",
            enqueue=True,
            backtrace=True,
            diagnose=True,
        )

    return loguru.logger


# Initialize a default logger instance
logger = setup_logger()
