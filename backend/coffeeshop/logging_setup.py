"""
Logging configuration for the Flask app logger.

Safe to call once per app instance (tests build several apps).
"""
import logging

from flask import Flask

from .config import DEFAULT_LOG_DATEFMT, DEFAULT_LOG_FORMAT


def configure_logging(app: Flask) -> None:
    if app.debug:
        level = logging.DEBUG
    else:
        level_name = str(app.config.get("LOG_LEVEL", "INFO")).upper()
        level = getattr(logging, level_name, logging.INFO)

    formatter = logging.Formatter(
        app.config.get("LOG_FORMAT", DEFAULT_LOG_FORMAT),
        datefmt=app.config.get("LOG_DATEFMT", DEFAULT_LOG_DATEFMT),
    )

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(formatter)

    app.logger.handlers = [console]
    app.logger.setLevel(level)
    app.logger.propagate = False

    app.logger.debug("Logging initialized, level=%s", logging.getLevelName(level))
