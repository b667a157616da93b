# Overview: Storefront catalog queries (filtering, favorites, product detail).

from __future__ import annotations

from dataclasses import dataclass, field

from ..exceptions import NotFoundError
from ..extensions import db
from ..listing import escape_like, LIKE_ESCAPE
from ..models import FOOD_VARIANT, Product, RecommendedProduct, Variant
from .product_service import load_images, load_sizes

SORT_COLUMNS = {
    "name": Product.title,
    "baseprice": Product.base_price,
}


@dataclass(frozen=True)
class CatalogFilter:
    categories: list[int] = field(default_factory=list)
    favorite: bool | None = None
    price_min: float | None = None
    price_max: float | None = None
    q: str = ""
    sort_by: str = "name"
    page: int = 1
    limit: int = 10


def _variant_names(variant_ids) -> dict[int, str]:
    ids = {vid for vid in variant_ids if vid is not None}
    if not ids:
        return {}
    return {v.id: v.name for v in db.session.query(Variant).filter(Variant.id.in_(list(ids))).all()}


def filter_products(flt: CatalogFilter) -> tuple[list[dict], int]:
    """
    Storefront listing. Each item carries its first visible image, the
    variant name and the size names.
    """
    query = db.session.query(Product).filter(Product.deleted_at.is_(None))

    if flt.categories:
        query = query.filter(Product.category_id.in_(flt.categories))
    if flt.favorite is not None:
        query = query.filter(Product.is_favorite.is_(flt.favorite))
    if flt.price_min is not None:
        query = query.filter(Product.base_price >= flt.price_min)
    if flt.price_max is not None:
        query = query.filter(Product.base_price <= flt.price_max)
    if flt.q:
        pattern = f"%{escape_like(flt.q)}%"
        query = query.filter(
            db.or_(
                Product.title.ilike(pattern, escape=LIKE_ESCAPE),
                Product.description.ilike(pattern, escape=LIKE_ESCAPE),
            )
        )

    total = query.order_by(None).count()

    sort_col = SORT_COLUMNS.get(flt.sort_by, Product.title)
    rows = (
        query.order_by(sort_col.asc(), Product.id.asc())
        .offset((flt.page - 1) * flt.limit)
        .limit(flt.limit)
        .all()
    )

    ids = [p.id for p in rows]
    images = load_images(ids)
    sizes = load_sizes(ids)
    variants = _variant_names(p.variant_id for p in rows)

    items = []
    for p in rows:
        first = images.get(p.id) or [{}]
        items.append({
            "id": p.id,
            "title": p.title,
            "description": p.description or "",
            "base_price": float(p.base_price or 0),
            "image": first[0].get("image", ""),
            "variant": variants.get(p.variant_id, ""),
            "sizes": [s["name"] for s in sizes.get(p.id, [])],
        })
    return items, total


def favorite_products(limit: int) -> list[dict]:
    rows = (
        db.session.query(Product)
        .filter(Product.is_favorite.is_(True), Product.deleted_at.is_(None))
        .order_by(Product.updated_at.desc(), Product.id.desc())
        .limit(limit)
        .all()
    )
    images = load_images([p.id for p in rows])
    out = []
    for p in rows:
        first = images.get(p.id) or [{}]
        out.append({
            "id": p.id,
            "title": p.title,
            "description": p.description or "",
            "base_price": float(p.base_price or 0),
            "image": first[0].get("image", ""),
        })
    return out


def _detail_dicts(products: list[Product]) -> list[dict]:
    ids = [p.id for p in products]
    images = load_images(ids)
    sizes = load_sizes(ids)
    variants = {
        v.id: v for v in db.session.query(Variant).filter(
            Variant.id.in_([p.variant_id for p in products if p.variant_id is not None])
        ).all()
    } if ids else {}

    out = []
    for p in products:
        variant = variants.get(p.variant_id)
        is_food = variant is not None and variant.name == FOOD_VARIANT
        out.append({
            "id": p.id,
            "title": p.title,
            "description": p.description or "",
            "base_price": float(p.base_price or 0),
            "stock": p.stock,
            "category_id": p.category_id,
            "variant": variant.to_dict() if variant else None,
            "images": images.get(p.id, []),
            "sizes": [] if is_food else sizes.get(p.id, []),
        })
    return out


def product_detail(product_id: int) -> dict:
    """
    Product with variant, images, sizes (none for Food) and recommended
    products of the same variant.
    """
    product = db.session.get(Product, product_id)
    if product is None or product.deleted_at is not None:
        raise NotFoundError("Product not found")

    rec_query = (
        db.session.query(Product)
        .join(RecommendedProduct, RecommendedProduct.recommended_id == Product.id)
        .filter(RecommendedProduct.product_id == product.id, Product.deleted_at.is_(None))
    )
    if product.variant_id is not None:
        rec_query = rec_query.filter(Product.variant_id == product.variant_id)
    recommended = rec_query.order_by(Product.id.asc()).all()

    detail = _detail_dicts([product])[0]
    detail["recommended"] = _detail_dicts(recommended)
    return detail
