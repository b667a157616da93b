# Overview: Service-layer operations for admin products, their images and sizes.

"""
Product Service

Products own two child collections that are never join-fetched:
- images (product_images, soft-deleted via deleted_at)
- sizes (product_sizes link table to sizes)

Both are hydrated with one extra query keyed by the product ids of the
current page. Create and update write the product row and its children in
a single transaction.

The admin list is cached in Redis per (page, limit, search, sort, order);
every product write drops all "products:*" keys.
"""

from __future__ import annotations

from collections import defaultdict

from flask import current_app
from werkzeug.datastructures import FileStorage

from ..exceptions import ConflictError, NotFoundError, ValidationError
from ..extensions import cache, db
from ..listing import ListParams, ListSpec, paginate
from ..models import (
    CartItem,
    Category,
    Product,
    ProductImage,
    ProductSize,
    RecommendedProduct,
    Size,
    TransactionItem,
    Variant,
)
from ..time_utils import utcnow
from ..validation import ModelValidationPolicy, enforce_rules_product, validate_payload
from . import upload_service
from .persistence import atomic

IMAGE_FOLDER = "products"
CACHE_PREFIX = "products"

PRODUCT_LIST = ListSpec(
    sort_columns={
        "id": Product.id,
        "title": Product.title,
        "base_price": Product.base_price,
        "stock": Product.stock,
        "created_at": Product.created_at,
    },
    search_columns=(Product.title, Product.description),
    default_sort="created_at",
    tiebreaker=Product.id,
)

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({
        "title",
        "description",
        "base_price",
        "stock",
        "category_id",
        "variant_id",
        "is_favorite",
    }),
    required_on_create=frozenset({"title", "base_price", "stock"}),
)


# -----------------------------------------------------------------------------
# Hydration
# -----------------------------------------------------------------------------


def load_images(product_ids: list[int]) -> dict[int, list[dict]]:
    """Visible images (deleted_at IS NULL) grouped by product id, oldest first."""
    grouped: dict[int, list[dict]] = defaultdict(list)
    if not product_ids:
        return grouped
    rows = (
        db.session.query(ProductImage)
        .filter(ProductImage.product_id.in_(product_ids), ProductImage.deleted_at.is_(None))
        .order_by(ProductImage.id.asc())
        .all()
    )
    for img in rows:
        grouped[img.product_id].append(img.to_dict())
    return grouped


def load_sizes(product_ids: list[int]) -> dict[int, list[dict]]:
    grouped: dict[int, list[dict]] = defaultdict(list)
    if not product_ids:
        return grouped
    rows = (
        db.session.query(ProductSize.product_id, Size)
        .join(Size, Size.id == ProductSize.size_id)
        .filter(ProductSize.product_id.in_(product_ids))
        .order_by(Size.id.asc())
        .all()
    )
    for product_id, size in rows:
        grouped[product_id].append(size.to_dict())
    return grouped


def serialize_products(products: list[Product]) -> list[dict]:
    ids = [p.id for p in products]
    images = load_images(ids)
    sizes = load_sizes(ids)
    out = []
    for p in products:
        data = p.to_dict()
        data["images"] = images.get(p.id, [])
        data["sizes"] = sizes.get(p.id, [])
        out.append(data)
    return out


# -----------------------------------------------------------------------------
# Validation helpers
# -----------------------------------------------------------------------------


def _check_references(patch: dict) -> None:
    errors = {}
    category_id = patch.get("category_id")
    if category_id is not None and db.session.get(Category, category_id) is None:
        errors["category_id"] = "Category not found"
    variant_id = patch.get("variant_id")
    if variant_id is not None and db.session.get(Variant, variant_id) is None:
        errors["variant_id"] = "Variant not found"
    if errors:
        raise ValidationError(errors)


def _check_sizes(size_ids: list[int]) -> None:
    if not size_ids:
        return
    found = {sid for (sid,) in db.session.query(Size.id).filter(Size.id.in_(size_ids)).all()}
    missing = [sid for sid in size_ids if sid not in found]
    if missing:
        raise ValidationError({"sizes": f"Unknown size id(s): {', '.join(map(str, missing))}"})


def invalidate_cache() -> None:
    cache.delete_pattern(f"{CACHE_PREFIX}:*")


def _get_live_product(product_id: int) -> Product:
    product = db.session.get(Product, product_id)
    if product is None or product.deleted_at is not None:
        raise NotFoundError("Product not found")
    return product


# -----------------------------------------------------------------------------
# Products
# -----------------------------------------------------------------------------


def list_products(params: ListParams) -> tuple[list[dict], int]:
    key = params.cache_key(CACHE_PREFIX)
    cached = cache.get_json(key)
    if cached is not None:
        return cached["items"], cached["total"]

    query = db.session.query(Product).filter(Product.deleted_at.is_(None))
    rows, total = paginate(query, PRODUCT_LIST, params)
    items = serialize_products(rows)

    cache.set_json(key, {"items": items, "total": total}, current_app.config["PRODUCT_CACHE_TTL"])
    return items, total


def get_product(product_id: int) -> dict:
    return serialize_products([_get_live_product(product_id)])[0]


def create_product(
    payload: dict,
    *,
    size_ids: list[int] | None = None,
    image_files: list[FileStorage] | None = None,
) -> dict:
    """
    Create a product with its sizes and uploaded images.

    Files are validated and written before the database transaction; when
    the transaction fails they are removed again.
    """
    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
    enforce_rules_product(patch)
    _check_references(patch)
    size_ids = size_ids or []
    _check_sizes(size_ids)

    saved = upload_service.save_images(image_files or [], IMAGE_FOLDER)
    product = Product(**patch)
    try:
        with atomic("Product already exists"):
            db.session.add(product)
            db.session.flush()
            for name in saved:
                db.session.add(ProductImage(product_id=product.id, image=name))
            for sid in size_ids:
                db.session.add(ProductSize(product_id=product.id, size_id=sid))
    except Exception:
        upload_service.remove_files(IMAGE_FOLDER, saved)
        raise

    invalidate_cache()
    current_app.logger.info("Created product %s with %d image(s)", product.id, len(saved))
    return get_product(product.id)


def update_product(
    product_id: int,
    payload: dict,
    *,
    size_ids: list[int] | None = None,
    image_files: list[FileStorage] | None = None,
) -> dict:
    """
    Replace the product's scalar fields; title, base_price and stock are
    required. Sizes and images are replaced wholesale only when supplied
    (size_ids / image_files not None).
    """
    product = _get_live_product(product_id)
    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
    enforce_rules_product(patch)
    _check_references(patch)
    if size_ids is not None:
        _check_sizes(size_ids)

    saved = upload_service.save_images(image_files, IMAGE_FOLDER) if image_files else []
    replaced: list[str] = []
    try:
        with atomic("Product already exists"):
            for key, value in patch.items():
                setattr(product, key, value)

            if image_files is not None:
                old = db.session.query(ProductImage).filter(ProductImage.product_id == product.id).all()
                replaced = [img.image for img in old]
                for img in old:
                    db.session.delete(img)
                for name in saved:
                    db.session.add(ProductImage(product_id=product.id, image=name))

            if size_ids is not None:
                db.session.query(ProductSize).filter(ProductSize.product_id == product.id).delete(
                    synchronize_session=False
                )
                for sid in size_ids:
                    db.session.add(ProductSize(product_id=product.id, size_id=sid))
    except Exception:
        upload_service.remove_files(IMAGE_FOLDER, saved)
        raise

    upload_service.remove_files(IMAGE_FOLDER, replaced)
    invalidate_cache()
    return get_product(product.id)


def delete_product(product_id: int) -> None:
    product = db.session.get(Product, product_id)
    if product is None:
        raise NotFoundError("Product not found")

    ordered = db.session.query(TransactionItem.id).filter(TransactionItem.product_id == product_id).first()
    if ordered:
        raise ConflictError("Product is referenced by transactions")

    images = [
        name for (name,) in
        db.session.query(ProductImage.image).filter(ProductImage.product_id == product_id).all()
    ]
    with atomic():
        db.session.query(ProductImage).filter(ProductImage.product_id == product_id).delete(
            synchronize_session=False
        )
        db.session.query(ProductSize).filter(ProductSize.product_id == product_id).delete(
            synchronize_session=False
        )
        db.session.query(RecommendedProduct).filter(
            db.or_(
                RecommendedProduct.product_id == product_id,
                RecommendedProduct.recommended_id == product_id,
            )
        ).delete(synchronize_session=False)
        db.session.query(CartItem).filter(CartItem.product_id == product_id).delete(
            synchronize_session=False
        )
        db.session.delete(product)

    upload_service.remove_files(IMAGE_FOLDER, images)
    invalidate_cache()
    current_app.logger.info("Deleted product %s", product_id)


# -----------------------------------------------------------------------------
# Product images
# -----------------------------------------------------------------------------


def _get_visible_image(product_id: int, image_id: int) -> ProductImage:
    image = (
        db.session.query(ProductImage)
        .filter(
            ProductImage.id == image_id,
            ProductImage.product_id == product_id,
            ProductImage.deleted_at.is_(None),
        )
        .one_or_none()
    )
    if image is None:
        raise NotFoundError("Image not found")
    return image


def list_images(product_id: int) -> list[dict]:
    _get_live_product(product_id)
    return load_images([product_id]).get(product_id, [])


def get_image(product_id: int, image_id: int) -> dict:
    _get_live_product(product_id)
    return _get_visible_image(product_id, image_id).to_dict()


def replace_image(product_id: int, image_id: int, file: FileStorage | None) -> dict:
    _get_live_product(product_id)
    image = _get_visible_image(product_id, image_id)
    if file is None or not file.filename:
        raise ValidationError({"image": "Image file is required"})

    name = upload_service.save_image(file, IMAGE_FOLDER)
    old_name = image.image
    try:
        with atomic():
            image.image = name
            image.updated_at = utcnow()
    except Exception:
        upload_service.remove_files(IMAGE_FOLDER, [name])
        raise

    upload_service.remove_files(IMAGE_FOLDER, [old_name])
    invalidate_cache()
    return image.to_dict()


def delete_image(product_id: int, image_id: int) -> None:
    """Soft delete: the row stays, every view hides it."""
    _get_live_product(product_id)
    image = _get_visible_image(product_id, image_id)
    with atomic():
        image.deleted_at = utcnow()
    invalidate_cache()
