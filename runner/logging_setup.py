"""
Logging setup for site-audit.

Every module logs through a child of the ``site_audit`` logger, so one audit
run writes a single console stream and a single rotating log file:

    logger = get_logger("page_fetcher")   # -> "site_audit.page_fetcher"

Environment:
    LOG_LEVEL      Console/file level (default INFO)
    AUDIT_LOG_DIR  Directory for site_audit.log (default "logs"; "" disables
                   the file handler, which the test suite relies on)
"""

import logging
import os
import sys
from pathlib import Path
from logging.handlers import RotatingFileHandler

from dotenv import load_dotenv


# Load environment
load_dotenv()

ROOT_LOGGER = "site_audit"

# Libraries that log every request at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "asyncio")

CONSOLE_FORMAT = "%(levelname)s - %(message)s"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _file_handler(log_file: Path, level: int) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        log_file,
        maxBytes=10 * 1024 * 1024,  # 10 MB
        backupCount=5,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    return handler


def setup_logging(
    name: str = ROOT_LOGGER,
    log_level: str = None,
    log_file: str = None,
) -> logging.Logger:
    """
    Configure the audit logger hierarchy.

    Args:
        name: Logger to configure (default: the shared "site_audit" root)
        log_level: Log level (default: from LOG_LEVEL env var or INFO)
        log_file: Log file path (default: $AUDIT_LOG_DIR/site_audit.log)

    Returns:
        Configured logger instance
    """
    if log_level is None:
        log_level = os.getenv("LOG_LEVEL", "INFO")
    log_level = log_level.upper()
    numeric_level = getattr(logging, log_level, logging.INFO)

    logger = logging.getLogger(name)
    logger.setLevel(numeric_level)
    logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    logger.addHandler(console_handler)

    if log_file is None:
        logs_dir = os.getenv("AUDIT_LOG_DIR", "logs")
        if logs_dir:
            Path(logs_dir).mkdir(parents=True, exist_ok=True)
            log_file = Path(logs_dir) / f"{name}.log"

    if log_file is not None:
        logger.addHandler(_file_handler(Path(log_file), numeric_level))

    # Request-level chatter from httpx only at DEBUG
    for noisy in NOISY_LOGGERS:
        logging.getLogger(noisy).setLevel(max(numeric_level, logging.WARNING))

    logger.debug(f"Logging initialized: level={log_level}, file={log_file}")

    return logger


def get_logger(name: str = ROOT_LOGGER) -> logging.Logger:
    """
    Get a component logger under the shared "site_audit" root.

    The root is configured on first use; component loggers carry no handlers
    of their own and propagate to it.
    """
    root = logging.getLogger(ROOT_LOGGER)
    if not root.handlers:
        setup_logging(ROOT_LOGGER)

    if name == ROOT_LOGGER or name.startswith(ROOT_LOGGER + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")
