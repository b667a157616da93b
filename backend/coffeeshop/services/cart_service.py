# Overview: Service-layer operations for the caller's shopping cart.

from __future__ import annotations

from ..exceptions import ValidationError
from ..extensions import db
from ..models import CartItem, Product, Size, Variant
from .persistence import atomic
from .product_service import load_images


def _as_id(raw, field: str, errors: dict, *, required: bool) -> int | None:
    if raw is None or raw == "":
        if required:
            errors[field] = f"{field} is required"
        return None
    if isinstance(raw, bool):
        errors[field] = f"{field} must be an integer"
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        errors[field] = f"{field} must be an integer"
        return None


def _parse_items(payload) -> list[dict]:
    if isinstance(payload, dict):
        payload = [payload]
    if not isinstance(payload, list) or not payload:
        raise ValidationError({"items": "At least one cart item is required"})

    parsed = []
    for index, raw in enumerate(payload):
        if not isinstance(raw, dict):
            raise ValidationError({f"items[{index}]": "Cart item must be an object"})
        errors: dict[str, str] = {}
        item = {
            "product_id": _as_id(raw.get("product_id"), "product_id", errors, required=True),
            "size_id": _as_id(raw.get("size_id"), "size_id", errors, required=False),
            "variant_id": _as_id(raw.get("variant_id"), "variant_id", errors, required=False),
            "quantity": _as_id(raw.get("quantity"), "quantity", errors, required=True),
        }
        if "quantity" not in errors and item["quantity"] is not None and item["quantity"] < 1:
            errors["quantity"] = "quantity must be at least 1"
        if errors:
            raise ValidationError(errors)
        parsed.append(item)
    return parsed


def add_items(user_id: int, payload) -> list[dict]:
    """
    Add items or bump the quantity of an identical line
    (same product, size and variant). The resulting quantity may not
    exceed the product's stock.
    """
    items = _parse_items(payload)

    with atomic():
        for item in items:
            product = db.session.get(Product, item["product_id"])
            if product is None or product.deleted_at is not None:
                raise ValidationError({"product_id": f"Product {item['product_id']} not found"})
            if item["size_id"] is not None and db.session.get(Size, item["size_id"]) is None:
                raise ValidationError({"size_id": f"Size {item['size_id']} not found"})
            if item["variant_id"] is not None and db.session.get(Variant, item["variant_id"]) is None:
                raise ValidationError({"variant_id": f"Variant {item['variant_id']} not found"})

            line = (
                db.session.query(CartItem)
                .filter(
                    CartItem.user_id == user_id,
                    CartItem.product_id == item["product_id"],
                    CartItem.size_id.is_(None) if item["size_id"] is None else CartItem.size_id == item["size_id"],
                    CartItem.variant_id.is_(None) if item["variant_id"] is None
                    else CartItem.variant_id == item["variant_id"],
                )
                .one_or_none()
            )
            in_cart = (
                db.session.query(db.func.coalesce(db.func.sum(CartItem.quantity), 0))
                .filter(CartItem.user_id == user_id, CartItem.product_id == item["product_id"])
                .scalar()
            )
            if in_cart + item["quantity"] > product.stock:
                raise ValidationError({"quantity": "Quantity exceeds available stock"})

            if line is None:
                db.session.add(CartItem(user_id=user_id, **item))
            else:
                line.quantity += item["quantity"]
            db.session.flush()

    return get_cart(user_id)["items"]


def get_cart(user_id: int) -> dict:
    """Cart lines with unit price (base + size surcharge), subtotal and total."""
    rows = (
        db.session.query(CartItem, Product, Size, Variant)
        .join(Product, Product.id == CartItem.product_id)
        .outerjoin(Size, Size.id == CartItem.size_id)
        .outerjoin(Variant, Variant.id == CartItem.variant_id)
        .filter(CartItem.user_id == user_id)
        .order_by(CartItem.id.asc())
        .all()
    )
    images = load_images([product.id for _, product, _, _ in rows])

    items = []
    total = 0.0
    for line, product, size, variant in rows:
        unit_price = float(product.base_price or 0) + (float(size.additional_price or 0) if size else 0.0)
        subtotal = unit_price * line.quantity
        total += subtotal
        first = images.get(product.id) or [{}]
        items.append({
            "id": line.id,
            "product_id": product.id,
            "title": product.title,
            "image": first[0].get("image", ""),
            "size_id": line.size_id,
            "size": size.name if size else None,
            "variant_id": line.variant_id,
            "variant": variant.name if variant else None,
            "quantity": line.quantity,
            "base_price": float(product.base_price or 0),
            "unit_price": unit_price,
            "subtotal": subtotal,
        })
    return {"items": items, "total": total}


def clear_cart(user_id: int) -> int:
    with atomic():
        removed = db.session.query(CartItem).filter(CartItem.user_id == user_id).delete(
            synchronize_session=False
        )
    return removed
