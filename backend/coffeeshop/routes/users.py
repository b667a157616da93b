# Overview: Admin routes for user management under /admin/userslist.

from flask import Blueprint, current_app, request

from ..decorators import require_auth, require_role
from ..listing import build_pagination, parse_list_params
from ..request_data import read_payload
from ..responses import paged, success
from ..services import user_service

users_bp = Blueprint("users", __name__, url_prefix="/admin/userslist")


@users_bp.get("")
@require_auth
@require_role("admin")
def list_users_route():
    params = parse_list_params(
        request.args, user_service.USER_LIST, max_limit=current_app.config["MAX_PAGE_LIMIT"]
    )
    items, total = user_service.list_users(params)
    pagination, links = build_pagination(request.path, params.page, params.limit, total, request.args)
    return paged("Users fetched successfully", items, pagination, links)


@users_bp.post("")
@require_auth
@require_role("admin")
def create_user_route():
    user = user_service.create_user(read_payload(exclude=("image",)), request.files.get("image"))
    return success("User created successfully", user, 201)


@users_bp.get("/<int:user_id>")
@require_auth
@require_role("admin")
def get_user_route(user_id: int):
    return success("User fetched successfully", user_service.get_user(user_id))


@users_bp.patch("/<int:user_id>")
@require_auth
@require_role("admin")
def update_user_route(user_id: int):
    user = user_service.update_user(user_id, read_payload(exclude=("image",)), request.files.get("image"))
    return success("User updated successfully", user)


@users_bp.delete("/<int:user_id>")
@require_auth
@require_role("admin")
def delete_user_route(user_id: int):
    user_service.delete_user(user_id)
    return success("User deleted successfully")
