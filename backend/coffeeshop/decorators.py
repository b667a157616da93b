# Overview: Request decorators for API routes (bearer token auth and role gates).

from functools import wraps

from flask import request, g

from .exceptions import AuthError, ForbiddenError
from .services import token_service


def require_auth(f):
    """
    Require a valid bearer token.

    Sets g.current_user to the token Identity (id, email, role).
    Raises AuthError (401) when the header is missing or the token is
    invalid, expired or from another issuer.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_header = request.headers.get("Authorization", "")

        if not auth_header.startswith("Bearer "):
            raise AuthError("Authentication required")

        token = auth_header.split(" ", 1)[1].strip()
        if not token:
            raise AuthError("Authentication required")

        g.current_user = token_service.decode_token(token)
        return f(*args, **kwargs)

    return decorated_function


def require_role(role: str):
    """
    Require that the authenticated caller has the given role.

    Must be stacked below @require_auth.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            current = getattr(g, "current_user", None)
            if current is None:
                raise AuthError("Authentication required")
            if current.role != role:
                raise ForbiddenError()
            return f(*args, **kwargs)

        return decorated_function

    return decorator
