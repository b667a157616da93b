# Overview: Central mapping from exceptions to the JSON envelope.

from __future__ import annotations

from flask import Flask, current_app
from werkzeug.exceptions import HTTPException

from .exceptions import CoffeeShopError
from .responses import failure


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(CoffeeShopError)
    def handle_app_error(exc: CoffeeShopError):
        if exc.status_code >= 500:
            current_app.logger.error("%s: %s", type(exc).__name__, exc.message)
        return failure(exc.message, exc.status_code, exc.data)

    @app.errorhandler(HTTPException)
    def handle_http_error(exc: HTTPException):
        return failure(exc.description or exc.name, exc.code or 500)

    @app.errorhandler(Exception)
    def handle_unexpected(exc: Exception):
        # Raw driver/database text stays in the log only
        current_app.logger.exception("Unhandled error")
        return failure("Internal server error", 500)
