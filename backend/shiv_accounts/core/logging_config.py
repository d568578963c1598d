"""
Logging setup for the accounting API

Console output is coloured by level; everything from INFO up also lands in
a dated app log and errors get their own file so failed postings are easy
to find.
"""

import logging
import sys
from datetime import date
from pathlib import Path
from typing import Iterable

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers that only matter when something is wrong
QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "httpx", "httpcore", "apscheduler")


class ColoredFormatter(logging.Formatter):
    """Console formatter with ANSI coloured level names"""

    LEVEL_COLORS = {
        logging.DEBUG: '\033[36m',
        logging.INFO: '\033[32m',
        logging.WARNING: '\033[33m',
        logging.ERROR: '\033[31m',
        logging.CRITICAL: '\033[35m',
    }
    RESET = '\033[0m'

    def format(self, record):
        # File handlers share the record, so colour a copy
        colored = logging.makeLogRecord(record.__dict__)
        color = self.LEVEL_COLORS.get(record.levelno, "")
        colored.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(colored)


def _file_handler(path: Path, level: int) -> logging.FileHandler:
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    return handler


def setup_logging(log_level: str = "INFO", log_dir: str = "logs", quiet: Iterable[str] = QUIET_LOGGERS):
    """
    Configure the root logger

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        log_dir: directory for app_<date>.log and error_<date>.log
        quiet: logger names lowered to WARNING
    """
    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)
    stamp = date.today().isoformat()

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    root_logger.handlers.clear()

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(ColoredFormatter(LOG_FORMAT, DATE_FORMAT))
    root_logger.addHandler(console)
    root_logger.addHandler(_file_handler(log_path / f"app_{stamp}.log", logging.INFO))
    root_logger.addHandler(_file_handler(log_path / f"error_{stamp}.log", logging.ERROR))

    for name in quiet:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).info(f"📋 Logging to {log_path.resolve()} at {log_level.upper()}")


def get_logger(name: str) -> logging.Logger:
    """Named logger, e.g. get_logger(__name__)"""
    return logging.getLogger(name)
