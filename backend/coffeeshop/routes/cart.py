# Overview: Routes for the caller's cart.

from flask import Blueprint, request

from ..decorators import require_auth
from ..exceptions import ValidationError
from ..request_data import current_user_id
from ..responses import success
from ..services import cart_service

cart_bp = Blueprint("cart", __name__, url_prefix="/cart")


@cart_bp.post("")
@require_auth
def add_to_cart_route():
    """Body: one item object or a list of {product_id, size_id?, variant_id?, quantity}."""
    body = request.get_json(silent=True)
    if body is None:
        raise ValidationError({"body": "Request body must be JSON"})
    items = cart_service.add_items(current_user_id(), body)
    return success("Items added successfully", items)


@cart_bp.get("")
@require_auth
def get_cart_route():
    return success("Cart fetched successfully", cart_service.get_cart(current_user_id()))


@cart_bp.delete("")
@require_auth
def clear_cart_route():
    removed = cart_service.clear_cart(current_user_id())
    return success("Cart cleared successfully", {"removed": removed})
