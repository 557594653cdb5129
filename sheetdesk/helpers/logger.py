import logging
import os
from logging.handlers import RotatingFileHandler

__all__ = ["get_logger"]

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def _file_handler(path: str, formatter: logging.Formatter) -> RotatingFileHandler:
    handler = RotatingFileHandler(path, maxBytes=5 * 1024 * 1024, backupCount=3, encoding="utf-8")
    handler.setFormatter(formatter)
    return handler


def get_logger(name: str = "sheetdesk") -> logging.Logger:
    """Configure and return the package logger.

    Handlers are attached once, however often this is called. LOG_LEVEL sets
    the level; SHEETDESK_LOG_FILE adds a rotating file next to the console.
    Modules log through children of this logger: logging.getLogger(__name__).
    """
    log = logging.getLogger(name)
    if log.handlers:
        return log

    log.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))
    formatter = logging.Formatter(LOG_FORMAT)

    console = logging.StreamHandler()
    console.setFormatter(formatter)
    log.addHandler(console)

    log_file = os.getenv("SHEETDESK_LOG_FILE")
    if log_file:
        try:
            log.addHandler(_file_handler(log_file, formatter))
        except OSError:
            log.exception("Could not open log file %s; logging to the console only", log_file)

    return log
