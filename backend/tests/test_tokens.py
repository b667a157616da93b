"""Token issuing/verification and request decorator tests."""

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from coffeeshop.exceptions import AuthError
from coffeeshop.services import token_service


def test_issue_and_decode(app):
    token = token_service.issue_token(7, "a@b.test", "admin")
    identity = token_service.decode_token(token)
    assert identity.id == 7
    assert identity.email == "a@b.test"
    assert identity.is_admin

    claims = jwt.decode(token, app.config["JWT_SECRET"], algorithms=["HS256"], issuer="coffeeshop")
    assert claims["exp"] - claims["iat"] == 24 * 3600


def test_expired_token_rejected(app):
    issued = datetime.now(timezone.utc) - timedelta(hours=25)
    token = token_service.issue_token(1, "a@b.test", "user", now=issued)
    with pytest.raises(AuthError) as exc:
        token_service.decode_token(token)
    assert exc.value.message == "Token expired"


def test_wrong_secret_rejected(app):
    token = jwt.encode(
        {"id": 1, "email": "a@b.test", "role": "admin", "iss": "coffeeshop",
         "exp": datetime.now(timezone.utc) + timedelta(hours=1)},
        "not-the-secret-but-long-enough-for-hs256",
        algorithm="HS256",
    )
    with pytest.raises(AuthError):
        token_service.decode_token(token)


def test_wrong_issuer_rejected(app):
    token = jwt.encode(
        {"id": 1, "email": "a@b.test", "role": "admin", "iss": "someone-else",
         "exp": datetime.now(timezone.utc) + timedelta(hours=1)},
        app.config["JWT_SECRET"],
        algorithm="HS256",
    )
    with pytest.raises(AuthError):
        token_service.decode_token(token)
