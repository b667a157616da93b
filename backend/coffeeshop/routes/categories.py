# Overview: Admin routes for product categories.

from flask import Blueprint, current_app, request

from ..decorators import require_auth, require_role
from ..listing import build_pagination, parse_list_params
from ..request_data import read_payload
from ..responses import paged, success
from ..services import category_service

categories_bp = Blueprint("categories", __name__, url_prefix="/admin/categories")


@categories_bp.get("")
@require_auth
@require_role("admin")
def list_categories_route():
    params = parse_list_params(
        request.args, category_service.CATEGORY_LIST, max_limit=current_app.config["MAX_PAGE_LIMIT"]
    )
    rows, total = category_service.list_categories(params)
    pagination, links = build_pagination(request.path, params.page, params.limit, total, request.args)
    return paged("Categories fetched successfully", [c.to_dict() for c in rows], pagination, links)


@categories_bp.post("")
@require_auth
@require_role("admin")
def create_category_route():
    category = category_service.create_category(read_payload())
    return success("Category created successfully", category.to_dict(), 201)


@categories_bp.get("/<int:category_id>")
@require_auth
@require_role("admin")
def get_category_route(category_id: int):
    return success("Category fetched successfully", category_service.get_category(category_id).to_dict())


@categories_bp.patch("/<int:category_id>")
@require_auth
@require_role("admin")
def update_category_route(category_id: int):
    category = category_service.update_category(category_id, read_payload())
    return success("Category updated successfully", category.to_dict())


@categories_bp.delete("/<int:category_id>")
@require_auth
@require_role("admin")
def delete_category_route(category_id: int):
    category_service.delete_category(category_id)
    return success("Category deleted successfully")
