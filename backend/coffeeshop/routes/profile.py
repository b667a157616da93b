# Overview: Routes for the caller's own profile.

from flask import Blueprint, request

from ..decorators import require_auth
from ..request_data import current_user_id, read_payload
from ..responses import success
from ..services import user_service

profile_bp = Blueprint("profile", __name__, url_prefix="/profile")


@profile_bp.get("")
@require_auth
def get_profile_route():
    return success("Profile fetched successfully", user_service.get_profile(current_user_id()))


@profile_bp.patch("")
@require_auth
def update_profile_route():
    profile = user_service.update_profile(
        current_user_id(),
        read_payload(exclude=("image",)),
        request.files.get("image"),
    )
    return success("Profile updated successfully", profile)
