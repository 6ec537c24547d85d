"""
Logging Configuration for Milestone Keeper.

Both entry points (the API and the command line run) log through the
``milestone_keeper`` logger. Settings come from the ``logging`` section of
the YAML config; LOG_LEVEL and LOG_FILE environment variables win over it.
"""

import os
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional
from logging.handlers import RotatingFileHandler

PACKAGE_LOGGER = "milestone_keeper"

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Per-request transport and producer chatter drowns out the run log
DEFAULT_QUIET_LOGGERS = ["httpx", "httpcore", "kafka"]


def _build_handlers(log_file: Optional[str], max_bytes: int, backup_count: int) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(RotatingFileHandler(
            log_file,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding='utf-8'
        ))
    return handlers


def setup_logging(
    config: Optional[Dict[str, Any]] = None,
    level: Optional[str] = None,
    log_file: Optional[str] = None
) -> logging.Logger:
    """
    Configure root logging for a milestone run or the API process.

    Args:
        config: The ``logging`` section of the YAML config (level, format,
            file, max_bytes, backup_count, quiet_loggers). May be None.
        level: Explicit level, overriding LOG_LEVEL and the config
        log_file: Explicit log file, overriding LOG_FILE and the config.
            An empty file setting logs to stdout only.

    Returns:
        The package logger
    """
    config = config or {}
    level = (level or os.getenv("LOG_LEVEL") or config.get('level', "INFO")).upper()
    if log_file is None:
        log_file = os.getenv("LOG_FILE", config.get('file'))

    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format=config.get('format', DEFAULT_FORMAT),
        handlers=_build_handlers(
            log_file,
            int(config.get('max_bytes', 10 * 1024 * 1024)),
            int(config.get('backup_count', 5))
        ),
        force=True
    )

    for name in config.get('quiet_loggers', DEFAULT_QUIET_LOGGERS):
        logging.getLogger(name).setLevel(logging.WARNING)

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.info(f"Logging configured at {level} level" + (f", writing to {log_file}" if log_file else ""))
    return logger


def get_logger(name: str) -> logging.Logger:
    """Logger nested under the package logger, e.g. ``milestone_keeper.action``."""
    return logging.getLogger(f"{PACKAGE_LOGGER}.{name}")
