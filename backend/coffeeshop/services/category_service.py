# Overview: Service-layer operations for product categories.

from __future__ import annotations

from ..exceptions import ConflictError, NotFoundError
from ..extensions import db
from ..listing import ListParams, ListSpec, paginate
from ..models import Category, Product
from ..validation import ModelValidationPolicy, validate_payload
from .persistence import atomic

CATEGORY_LIST = ListSpec(
    sort_columns={"name": Category.name, "created_at": Category.created_at},
    search_columns=(Category.name,),
    default_sort="created_at",
    tiebreaker=Category.id,
)

CATEGORY_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({"name"}),
    required_on_create=frozenset({"name"}),
)


def list_categories(params: ListParams) -> tuple[list[Category], int]:
    return paginate(db.session.query(Category), CATEGORY_LIST, params)


def get_category(category_id: int) -> Category:
    category = db.session.get(Category, category_id)
    if category is None:
        raise NotFoundError("Category not found")
    return category


def create_category(payload: dict) -> Category:
    patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=False)
    category = Category(name=patch["name"])
    with atomic("Category already exists"):
        db.session.add(category)
    return category


def update_category(category_id: int, payload: dict) -> Category:
    category = get_category(category_id)
    patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=False)
    with atomic("Category already exists"):
        category.name = patch["name"]
    return category


def delete_category(category_id: int) -> None:
    category = get_category(category_id)
    in_use = db.session.query(Product.id).filter(Product.category_id == category_id).first()
    if in_use:
        raise ConflictError("Category is still used by products")
    with atomic():
        db.session.delete(category)
