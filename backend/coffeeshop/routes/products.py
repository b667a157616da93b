# Overview: Admin routes for products and product images; accepts multipart or JSON bodies.

"""
Admin product routes

Create/update accept multipart form data (fields plus repeated "images"
files and "sizes" ids) or a JSON object. Sizes and images are only
replaced on update when the request carries them.
"""

from flask import Blueprint, current_app, request

from ..decorators import require_auth, require_role
from ..listing import build_pagination, parse_list_params
from ..request_data import read_files, read_list, read_payload
from ..responses import paged, success
from ..services import product_service
from ..validation import parse_id_list

products_bp = Blueprint("admin_products", __name__, url_prefix="/admin/products")

LIST_FIELDS = ("sizes", "images")


def _sizes():
    raw = read_list("sizes")
    return None if raw is None else parse_id_list(raw, "sizes")


@products_bp.get("")
@require_auth
@require_role("admin")
def list_products_route():
    params = parse_list_params(
        request.args, product_service.PRODUCT_LIST, max_limit=current_app.config["MAX_PAGE_LIMIT"]
    )
    items, total = product_service.list_products(params)
    pagination, links = build_pagination(request.path, params.page, params.limit, total, request.args)
    return paged("Products fetched successfully", items, pagination, links)


@products_bp.post("")
@require_auth
@require_role("admin")
def create_product_route():
    product = product_service.create_product(
        read_payload(exclude=LIST_FIELDS),
        size_ids=_sizes(),
        image_files=read_files("images"),
    )
    return success("Product created successfully", product, 201)


@products_bp.get("/<int:product_id>")
@require_auth
@require_role("admin")
def get_product_route(product_id: int):
    return success("Product fetched successfully", product_service.get_product(product_id))


@products_bp.patch("/<int:product_id>")
@require_auth
@require_role("admin")
def update_product_route(product_id: int):
    product = product_service.update_product(
        product_id,
        read_payload(exclude=LIST_FIELDS),
        size_ids=_sizes(),
        image_files=read_files("images"),
    )
    return success("Product updated successfully", product)


@products_bp.delete("/<int:product_id>")
@require_auth
@require_role("admin")
def delete_product_route(product_id: int):
    product_service.delete_product(product_id)
    return success("Product deleted successfully")


@products_bp.get("/<int:product_id>/images")
@require_auth
@require_role("admin")
def list_images_route(product_id: int):
    return success("Product images fetched successfully", product_service.list_images(product_id))


@products_bp.get("/<int:product_id>/images/<int:image_id>")
@require_auth
@require_role("admin")
def get_image_route(product_id: int, image_id: int):
    return success("Product image fetched successfully", product_service.get_image(product_id, image_id))


@products_bp.patch("/<int:product_id>/images/<int:image_id>")
@require_auth
@require_role("admin")
def replace_image_route(product_id: int, image_id: int):
    image = product_service.replace_image(product_id, image_id, request.files.get("image"))
    return success("Product image updated successfully", image)


@products_bp.delete("/<int:product_id>/images/<int:image_id>")
@require_auth
@require_role("admin")
def delete_image_route(product_id: int, image_id: int):
    product_service.delete_image(product_id, image_id)
    return success("Product image deleted successfully")
