# utils/logger.py
from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import IO, Optional, Union

ROOT_LOGGER = "flowaudit"

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_LEVEL_MAP = {
    "CRITICAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
}


def level_from_name(name: Optional[str], default: int = logging.INFO) -> int:
    if not name:
        return default
    return _LEVEL_MAP.get(name.upper(), default)


def _env_level() -> int:
    """FLOWAUDIT_LOG_LEVEL wins over LOG_LEVEL; INFO when neither is set."""
    return level_from_name(os.getenv("FLOWAUDIT_LOG_LEVEL") or os.getenv("LOG_LEVEL"))


class _ColorFormatter(logging.Formatter):
    """Colors whole records by level when the target stream is a terminal."""

    COLORS = {
        logging.ERROR: "\033[91m",    # red
        logging.WARNING: "\033[93m",  # yellow
        logging.INFO: "\033[92m",     # green
    }

    def __init__(self, stream: IO[str]):
        super().__init__(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
        self.use_color = hasattr(stream, "isatty") and stream.isatty()

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        if not self.use_color:
            return text
        for level, color in self.COLORS.items():
            if record.levelno >= level:
                return f"{color}{text}\033[0m"
        return text


def init_logger(
    level: Optional[int] = None,
    log_dir: Union[str, Path, None] = None,
    file_name: str = "audit.log",
    file_max_mb: int = 5,
    file_backup: int = 3,
) -> logging.Logger:
    """
    (Re)configure the `flowaudit` logger.

    Records go to stderr so that stdout only carries reports; `log_dir` adds
    a rotating file. Calling it again replaces the handlers.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.handlers.clear()
    logger.propagate = False
    logger.setLevel(level if level is not None else _env_level())

    sh = logging.StreamHandler(sys.stderr)
    sh.setFormatter(_ColorFormatter(sys.stderr))
    logger.addHandler(sh)

    if log_dir:
        folder = Path(log_dir)
        folder.mkdir(parents=True, exist_ok=True)
        fh = RotatingFileHandler(
            filename=str(folder / file_name),
            maxBytes=file_max_mb * 1024 * 1024,
            backupCount=file_backup,
            encoding="utf-8",
        )
        fh.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(fh)

    return logger


log = init_logger()


def get_logger(child: str) -> logging.Logger:
    """Child of the project logger, e.g. get_logger("orchestrator")."""
    return logging.getLogger(ROOT_LOGGER).getChild(child)
