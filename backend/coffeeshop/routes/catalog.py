# Overview: Storefront routes (public product filter; signed-in detail and favorites).

from flask import Blueprint, current_app, request

from ..decorators import require_auth
from ..listing import build_pagination, parse_page_limit
from ..responses import paged, success
from ..services import catalog_service
from ..services.catalog_service import CatalogFilter

catalog_bp = Blueprint("catalog", __name__)


def _float_arg(name: str):
    raw = request.args.get(name)
    if raw in (None, ""):
        return None
    try:
        return float(raw)
    except ValueError:
        return None


@catalog_bp.get("/products")
def filter_products_route():
    """
    Query parameters:
    - cat: category id, repeatable
    - favorite: true/false
    - price_min / price_max
    - q: text search over title and description
    - sortby: name (default) or baseprice
    - page / limit
    """
    page, limit = parse_page_limit(request.args, max_limit=current_app.config["MAX_PAGE_LIMIT"])
    categories = request.args.getlist("cat", type=int)
    favorite = request.args.get("favorite")

    flt = CatalogFilter(
        categories=categories,
        favorite=None if not favorite else favorite.lower() == "true",
        price_min=_float_arg("price_min"),
        price_max=_float_arg("price_max"),
        q=(request.args.get("q") or "").strip(),
        sort_by=request.args.get("sortby", "name"),
        page=page,
        limit=limit,
    )
    items, total = catalog_service.filter_products(flt)
    pagination, links = build_pagination(request.path, page, limit, total, request.args)
    return paged("Products filtered successfully", items, pagination, links)


@catalog_bp.get("/products/<int:product_id>")
@require_auth
def product_detail_route(product_id: int):
    return success("Product detail fetched successfully", catalog_service.product_detail(product_id))


@catalog_bp.get("/favorite-products")
@require_auth
def favorite_products_route():
    _, limit = parse_page_limit(request.args, max_limit=current_app.config["MAX_PAGE_LIMIT"])
    return success("Favorite products fetched successfully", catalog_service.favorite_products(limit))
