"""Logging configuration for the console client.

Diagnostics go to stderr so they never interleave with the menu and status
lines the login loop prints on stdout. Verbose libraries used during the
browser flow are held at WARNING unless DEBUG is requested.
"""

import logging
import sys
from pathlib import Path

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Libraries that log every request or redirect at INFO
NOISY_LOGGERS = ("aiohttp.access", "httpx", "httpcore", "authlib")


def setup_logging(
    level: str = "INFO",
    log_file: Path | None = None,
    name: str = "oidc_console",
) -> logging.Logger:
    """Configure root logging for the application.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file that receives a copy of every record
        name: Name of the logger to return

    Returns:
        The application logger
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level: {level}")

    console_handler = logging.StreamHandler(sys.stderr)
    handlers: list[logging.Handler] = [console_handler]
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    logging.basicConfig(level=numeric_level, format=LOG_FORMAT, handlers=handlers, force=True)

    library_level = logging.DEBUG if numeric_level <= logging.DEBUG else logging.WARNING
    for logger_name in NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(library_level)

    return logging.getLogger(name)
