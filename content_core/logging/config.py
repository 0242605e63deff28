# =============================================================================
# content_core/logging/config.py
# Logging Configuration for the Content Store
# =============================================================================

import logging
import os
import sys
import time
from pathlib import Path
from datetime import datetime
from typing import Optional, Union


LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LOG_DIR = Path("logs")

LEVEL_ENV_VAR = "CONTENT_LOG_LEVEL"

# Transport loggers pulled in by supabase; every request would log at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "hpack", "supabase", "postgrest", "realtime", "websockets")


def level_from_env(default: int = logging.INFO) -> int:
    """Level named by CONTENT_LOG_LEVEL (e.g. "DEBUG"), else ``default``."""
    name = os.getenv(LEVEL_ENV_VAR, "").strip().upper()
    level = logging.getLevelName(name) if name else default
    return level if isinstance(level, int) else default


def setup_logging(
    level: Optional[Union[int, str]] = None,
    log_to_file: bool = False,
    log_filename: Optional[str] = None,
) -> None:
    """
    Configure application-wide logging.

    Args:
        level: Logging level or level name (default: CONTENT_LOG_LEVEL, else INFO)
        log_to_file: Whether to also log to a file under ``logs/``
        log_filename: Custom log filename (default: content_YYYY-MM-DD.log)
    """
    if level is None:
        level = level_from_env()

    handlers = [logging.StreamHandler(sys.stdout)]

    if log_to_file:
        LOG_DIR.mkdir(exist_ok=True)
        if log_filename is None:
            log_filename = f"content_{datetime.now().strftime('%Y-%m-%d')}.log"
        handlers.append(logging.FileHandler(LOG_DIR / log_filename))

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        handlers=handlers,
        force=True,
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger("content_core").info(
        f"Logging initialized at {logging.getLevelName(logging.getLogger().level)}"
    )


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance with the given name.

    Usage:
        from content_core.logging import get_logger
        logger = get_logger(__name__)
        logger.warning("Remote read failed, using local cache")
    """
    return logging.getLogger(name)


class LogContext:
    """
    Context manager for logging operation timing and status.

    Content store failures (anything carrying an error ``code``) are
    expected outcomes and are logged as one WARNING line; any other
    exception is logged at ERROR with its traceback.

    Usage:
        with LogContext(logger, "Creating blog post"):
            repository.create("blog_posts", payload)
        # Logs: "Creating blog post... started"
        # Logs: "Creating blog post... completed (0.12s)"
    """

    def __init__(self, logger: logging.Logger, operation: str, level: int = logging.DEBUG):
        self.logger = logger
        self.operation = operation
        self.level = level
        self.start_time = None

    def __enter__(self):
        self.start_time = time.time()
        self.logger.log(self.level, f"{self.operation}... started")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        elapsed = time.time() - self.start_time

        if exc_type is None:
            self.logger.log(self.level, f"{self.operation}... completed ({elapsed:.2f}s)")
        elif getattr(exc_val, "code", None):
            self.logger.warning(
                f"{self.operation}... failed ({elapsed:.2f}s): [{exc_val.code}] "
                f"{getattr(exc_val, 'message', exc_val)}"
            )
        else:
            self.logger.error(
                f"{self.operation}... failed ({elapsed:.2f}s): {exc_val}",
                exc_info=True
            )

        return False
