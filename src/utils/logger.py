"""Centralized logging configuration."""

import os
import logging
from logging.handlers import RotatingFileHandler
from src.config import Config


def setup_logger(name: str, level: str = None) -> logging.Logger:
    """Set up a named logger with a console handler and, when LOG_DIR is
    configured, a rotating file handler."""
    logger = logging.getLogger(name)

    # Avoid adding handlers multiple times
    if logger.handlers:
        return logger

    logger.setLevel(level or Config.LOG_LEVEL)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(logging.Formatter(
        "%(asctime)s %(name)s - %(levelname)s - %(message)s"
    ))
    logger.addHandler(console_handler)

    if Config.LOG_DIR:
        os.makedirs(Config.LOG_DIR, exist_ok=True)
        file_handler = RotatingFileHandler(
            os.path.join(Config.LOG_DIR, f"{name}.log"),
            maxBytes=10 * 1024 * 1024,
            backupCount=10
        )
        file_handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]"
        ))
        logger.addHandler(file_handler)

    logger.propagate = False
    return logger


app_logger = setup_logger("app")
ledger_logger = setup_logger("ledger")
