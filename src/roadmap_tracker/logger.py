"""Logging configuration for the roadmap tracker."""
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOGGER_NAME = "roadmap_tracker"


def setup_logger(log_dir: Path, level: str = "INFO", console: bool = False) -> logging.Logger:
    """Configure the package logger with a rotating file handler.

    Module loggers (``logging.getLogger(__name__)``) inside the package
    propagate to this one. Calling it again returns the configured logger
    without adding handlers.
    """
    log_dir.mkdir(exist_ok=True, parents=True)
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    logger.propagate = False

    if logger.hasHandlers():
        return logger

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # 2MB per file, 5 backups
    file_handler = RotatingFileHandler(
        log_dir / "roadmap-tracker.log", maxBytes=2 * 1024 * 1024, backupCount=5,
    )
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    if console:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    return logger
