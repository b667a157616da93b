# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

"""
Authentication API routes

- Self-registration always creates a "user" account
- Login returns the user and a signed bearer token
- Password reset: forgot-password emails a 6-digit code, verify-otp checks
  it, reset-password consumes it
"""

from flask import Blueprint

from ..request_data import read_payload
from ..responses import success
from ..services import auth_service

auth_bp = Blueprint("auth", __name__, url_prefix="/auth")


@auth_bp.post("/register")
def register_route():
    data = read_payload()
    user = auth_service.register(data.get("fullname"), data.get("email"), data.get("password"))
    return success("User registered successfully", user.to_dict(), 201)


@auth_bp.post("/login")
def login_route():
    data = read_payload()
    user, token = auth_service.login(data.get("email"), data.get("password"))
    payload = user.to_dict()
    payload["token"] = token
    return success("Login successful", payload)


@auth_bp.post("/forgot-password")
def forgot_password_route():
    data = read_payload()
    auth_service.request_password_reset(data.get("email"))
    return success("OTP sent to email")


@auth_bp.post("/verify-otp")
def verify_otp_route():
    data = read_payload()
    auth_service.verify_otp(data.get("email"), data.get("otp"))
    return success("OTP verified")


@auth_bp.patch("/reset-password")
def reset_password_route():
    data = read_payload()
    auth_service.reset_password(data.get("token") or data.get("otp"), data.get("password"))
    return success("Password reset successfully")
