"""Field validators and integrity-error classification."""

import pytest
from sqlalchemy.exc import IntegrityError

from coffeeshop.validation import is_unique_violation, validate_password


@pytest.mark.parametrize("password, expected", [
    (None, "Password is required"),
    ("", "Password is required"),
    (1234567, "Password must be a string"),
    (["secret123"], "Password must be a string"),
    ("12345", "Password must be at least 6 characters"),
    ("secret", None),
])
def test_validate_password(password, expected):
    assert validate_password(password) == expected


def test_optional_password_may_be_absent():
    assert validate_password(None, required=False) is None
    assert validate_password(42, required=False) == "Password must be a string"


@pytest.mark.parametrize("message, expected", [
    ("UNIQUE constraint failed: users.email", True),
    ('duplicate key value violates unique constraint "users_email_key"', True),
    ("NOT NULL constraint failed: users.fullname", False),
    ("FOREIGN KEY constraint failed", False),
    ("CHECK constraint failed: unique_stock_positive", False),
])
def test_is_unique_violation(message, expected):
    exc = IntegrityError("INSERT ...", {}, Exception(message))
    assert is_unique_violation(exc) is expected
