# Overview: Service-layer operations for auth; registration, login and password reset.

"""
Authentication Service

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor from BCRYPT_ROUNDS, 12 by default)
- Minimum 6 characters required
- Login failures use one generic message whether the email is unknown or
  the password is wrong
- Reset codes are 6 digits from `secrets`, valid for OTP_TTL_SECONDS and
  consumed on use
"""

import secrets
from datetime import timedelta

import bcrypt
from flask import current_app

from ..exceptions import AuthError, ConflictError, InvalidCredentialsError, NotFoundError, ValidationError
from ..extensions import db
from ..models import ForgotPassword, ROLE_USER, User
from ..time_utils import utcnow
from ..validation import validate_email, validate_password
from . import mail_service, token_service
from .persistence import atomic

OTP_DIGITS = 6


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=current_app.config.get("BCRYPT_ROUNDS", 12))
    hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
    return hashed.decode("utf-8")  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """Timing-safe bcrypt check; malformed hashes and non-string passwords never match."""
    if not isinstance(password, str) or not isinstance(password_hash, str):
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def _normalize_email(email) -> str:
    return str(email or "").strip().lower()


def register(fullname, email, password) -> User:
    """
    Create a customer account. The role is always "user"; admins are made
    through the admin user endpoints or the CLI.
    """
    fullname = str(fullname or "").strip()
    email = _normalize_email(email)

    errors = {}
    if not fullname:
        errors["fullname"] = "Fullname is required"
    email_error = validate_email(email)
    if email_error:
        errors["email"] = email_error
    password_error = validate_password(password)
    if password_error:
        errors["password"] = password_error
    if errors:
        raise ValidationError(errors)

    if db.session.query(User.id).filter(User.email == email).first():
        raise ConflictError("Email already registered")

    user = User(
        fullname=fullname,
        email=email,
        password_hash=hash_password(password),
        role=ROLE_USER,
    )
    with atomic("Email already registered"):
        db.session.add(user)

    current_app.logger.info("Registered user %s", user.id)
    return user


def login(email, password) -> tuple[User, str]:
    """Returns (user, token). Raises InvalidCredentialsError for any mismatch."""
    email = _normalize_email(email)
    if not email or not password:
        errors = {}
        if not email:
            errors["email"] = "Email is required"
        if not password:
            errors["password"] = "Password is required"
        raise ValidationError(errors)

    user = db.session.query(User).filter(User.email == email).one_or_none()
    if user is None or not verify_password(password, user.password_hash):
        raise InvalidCredentialsError()

    token = token_service.issue_token(user.id, user.email, user.role)
    return user, token


def _generate_otp() -> str:
    return f"{secrets.randbelow(10 ** OTP_DIGITS):0{OTP_DIGITS}d}"


def _unused_otp(now) -> str:
    # Reset is looked up by code alone, so live codes must not collide
    while True:
        otp = _generate_otp()
        clash = (
            db.session.query(ForgotPassword.id)
            .filter(ForgotPassword.token == otp, ForgotPassword.expires_at > now)
            .first()
        )
        if clash is None:
            return otp


def request_password_reset(email) -> None:
    """Issue (or re-issue) a reset code and email it."""
    email = _normalize_email(email)
    email_error = validate_email(email)
    if email_error:
        raise ValidationError({"email": email_error})

    user = db.session.query(User).filter(User.email == email).one_or_none()
    if user is None:
        raise NotFoundError("Email not found")

    now = utcnow()
    otp = _unused_otp(now)
    expires_at = now + timedelta(seconds=current_app.config["OTP_TTL_SECONDS"])

    record = db.session.query(ForgotPassword).filter(ForgotPassword.user_id == user.id).one_or_none()
    with atomic():
        if record is None:
            db.session.add(ForgotPassword(user_id=user.id, token=otp, expires_at=expires_at))
        else:
            record.token = otp
            record.expires_at = expires_at
        db.session.flush()
        # A failed send rolls the new code back
        mail_service.send_otp_email(user.email, otp)

    current_app.logger.info("Issued password reset code for user %s", user.id)


def _live_record(query, now):
    return query.filter(ForgotPassword.expires_at > now).one_or_none()


def verify_otp(email, otp) -> None:
    email = _normalize_email(email)
    otp = str(otp or "").strip()
    if not email or not otp:
        errors = {}
        if not email:
            errors["email"] = "Email is required"
        if not otp:
            errors["otp"] = "OTP is required"
        raise ValidationError(errors)

    user = db.session.query(User).filter(User.email == email).one_or_none()
    if user is None:
        raise AuthError("Invalid or expired OTP")

    record = _live_record(
        db.session.query(ForgotPassword).filter(
            ForgotPassword.user_id == user.id,
            ForgotPassword.token == otp,
        ),
        utcnow(),
    )
    if record is None:
        raise AuthError("Invalid or expired OTP")


def reset_password(token, password) -> None:
    token = str(token or "").strip()
    errors = {}
    if not token:
        errors["token"] = "Token is required"
    password_error = validate_password(password)
    if password_error:
        errors["password"] = password_error
    if errors:
        raise ValidationError(errors)

    record = _live_record(
        db.session.query(ForgotPassword).filter(ForgotPassword.token == token),
        utcnow(),
    )
    if record is None:
        raise AuthError("Invalid or expired OTP")

    user = db.session.get(User, record.user_id)
    if user is None:
        raise NotFoundError("User not found")

    with atomic():
        user.password_hash = hash_password(password)
        db.session.delete(record)
    current_app.logger.info("Password reset for user %s", user.id)
