# backend/coffeeshop/exceptions.py
"""
Application exceptions.

Each exception carries the HTTP status code and default message used by the
central error handlers, so services raise them and routes stay thin.
"""
from __future__ import annotations


class CoffeeShopError(Exception):
    """Base exception for all app errors; never raised directly."""
    status_code = 500
    message = "Internal server error"

    def __init__(self, message: str | None = None, data=None):
        super().__init__(message or self.message)
        self.message = message or self.message
        self.data = data


class ValidationError(CoffeeShopError):
    """400-level input problem; ``errors`` maps field name to message."""
    status_code = 400
    message = "Invalid request body"

    def __init__(self, errors: dict[str, str] | None = None, message: str | None = None):
        self.errors = dict(errors or {})
        super().__init__(message, data=self.errors or None)


class AuthError(CoffeeShopError):
    status_code = 401
    message = "Unauthorized"


class InvalidCredentialsError(AuthError):
    message = "Email or password incorrect"


class ForbiddenError(CoffeeShopError):
    status_code = 403
    message = "Forbidden: admin access only"


class NotFoundError(CoffeeShopError):
    status_code = 404
    message = "Resource not found"


class ConflictError(CoffeeShopError):
    """409-level uniqueness or reference conflict (e.g., duplicate email)."""
    status_code = 409
    message = "Resource already exists"


class MailDeliveryError(CoffeeShopError):
    status_code = 500
    message = "Failed to send OTP email, please check SMTP configuration"
