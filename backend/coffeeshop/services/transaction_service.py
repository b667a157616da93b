# Overview: Service-layer operations for orders (admin management, history, checkout).

"""
Transaction Service

The order total is never stored. It is the sum of price * quantity over
transaction_items and is computed in SQL as a correlated subquery, so it can
also be used as a sort key in the admin list.

Checkout turns the caller's cart into one transaction:
- unit prices are snapshotted (base price + size surcharge)
- product stock is decremented
- the cart is emptied
all inside a single database transaction.
"""

from __future__ import annotations

import secrets
from collections import defaultdict

from flask import current_app

from ..exceptions import NotFoundError, ValidationError
from ..extensions import db
from ..listing import ListParams, ListSpec, paginate
from ..models import (
    CartItem,
    DEFAULT_STATUS,
    PaymentMethod,
    Product,
    Profile,
    Shipping,
    Size,
    Status,
    Transaction,
    TransactionItem,
    User,
)
from ..time_utils import utcnow
from ..validation import validate_email
from . import product_service
from .persistence import atomic, lock_for_update

HISTORY_PAGE_SIZE = 5

TOTAL_EXPR = (
    db.select(db.func.coalesce(db.func.sum(TransactionItem.price * TransactionItem.quantity), 0))
    .where(TransactionItem.transaction_id == Transaction.id)
    .correlate(Transaction)
    .scalar_subquery()
)

TRANSACTION_LIST = ListSpec(
    sort_columns={
        "created_at": Transaction.created_at,
        "updated_at": Transaction.updated_at,
        "order_number": Transaction.order_number,
        "total": TOTAL_EXPR,
    },
    search_columns=(User.fullname, Transaction.order_number),
    default_sort="created_at",
    tiebreaker=Transaction.id,
)


def _base_query():
    return (
        db.session.query(Transaction, TOTAL_EXPR.label("total"))
        .outerjoin(User, User.id == Transaction.user_id)
    )


def load_items(transaction_ids: list[int]) -> dict[int, list[dict]]:
    """Read-only line projection grouped by transaction id."""
    grouped: dict[int, list[dict]] = defaultdict(list)
    if not transaction_ids:
        return grouped
    rows = (
        db.session.query(TransactionItem, Product.title, Size.name)
        .outerjoin(Product, Product.id == TransactionItem.product_id)
        .outerjoin(Size, Size.id == TransactionItem.size_id)
        .filter(TransactionItem.transaction_id.in_(transaction_ids))
        .order_by(TransactionItem.id.asc())
        .all()
    )
    for item, title, size_name in rows:
        grouped[item.transaction_id].append({
            "product_id": item.product_id,
            "title": title,
            "size": size_name,
            "qty": item.quantity,
            "price": float(item.price or 0),
        })
    return grouped


def _serialize(rows, *, with_items: bool) -> list[dict]:
    items = load_items([tx.id for tx, _ in rows]) if with_items else {}
    out = []
    for tx, total in rows:
        data = tx.to_dict()
        data["total"] = float(total or 0)
        if with_items:
            data["order_items"] = items.get(tx.id, [])
        out.append(data)
    return out


# -----------------------------------------------------------------------------
# Admin
# -----------------------------------------------------------------------------


def list_transactions(params: ListParams) -> tuple[list[dict], int]:
    rows, total = paginate(_base_query(), TRANSACTION_LIST, params)
    return _serialize(rows, with_items=True), total


def get_transaction(transaction_id: int) -> dict:
    row = _base_query().filter(Transaction.id == transaction_id).one_or_none()
    if row is None:
        raise NotFoundError("Transaction not found")
    return _serialize([row], with_items=True)[0]


def update_status(transaction_id: int, status_id) -> dict:
    if status_id is None or isinstance(status_id, bool):
        raise ValidationError({"status_id": "status_id is required"})
    try:
        status_id = int(status_id)
    except (TypeError, ValueError):
        raise ValidationError({"status_id": "status_id must be an integer"})

    status = db.session.get(Status, status_id)
    if status is None:
        raise ValidationError({"status_id": "Status not found"})

    tx = db.session.get(Transaction, transaction_id)
    if tx is None:
        raise NotFoundError("Transaction not found")

    with atomic():
        tx.status_id = status.id
        tx.updated_at = utcnow()

    return {"transactionId": tx.id, "newStatus": status.name}


def delete_transaction(transaction_id: int) -> None:
    tx = db.session.get(Transaction, transaction_id)
    if tx is None:
        raise NotFoundError("Transaction not found")
    with atomic():
        db.session.query(TransactionItem).filter(TransactionItem.transaction_id == transaction_id).delete(
            synchronize_session=False
        )
        db.session.delete(tx)
    current_app.logger.info("Deleted transaction %s", transaction_id)


# -----------------------------------------------------------------------------
# Customer history
# -----------------------------------------------------------------------------


def history(user_id: int, *, status: str = "", month: int = 0, page: int = 1) -> tuple[list[dict], int]:
    """Caller's own orders, newest first, HISTORY_PAGE_SIZE per page."""
    query = _base_query().filter(Transaction.user_id == user_id)
    if status:
        query = query.join(Status, Status.id == Transaction.status_id).filter(
            db.func.lower(Status.name) == status.strip().lower()
        )
    if 1 <= month <= 12:
        query = query.filter(db.extract("month", Transaction.created_at) == month)

    params = ListParams(page=page, limit=HISTORY_PAGE_SIZE, sort="created_at", order="desc")
    rows, total = paginate(query, TRANSACTION_LIST, params)
    return _serialize(rows, with_items=False), total


def history_detail(user_id: int, transaction_id: int) -> dict:
    row = (
        _base_query()
        .filter(Transaction.id == transaction_id, Transaction.user_id == user_id)
        .one_or_none()
    )
    if row is None:
        raise NotFoundError("Transaction not found")
    return _serialize([row], with_items=True)[0]


# -----------------------------------------------------------------------------
# Checkout
# -----------------------------------------------------------------------------


def _new_order_number() -> str:
    return f"ORD-{utcnow():%Y%m%d%H%M%S}-{secrets.token_hex(3).upper()}"


def _lookup_id(model, raw, field: str, errors: dict):
    if raw is None or raw == "" or isinstance(raw, bool):
        errors[field] = f"{field} is required"
        return None
    try:
        row = db.session.get(model, int(raw))
    except (TypeError, ValueError):
        errors[field] = f"{field} must be an integer"
        return None
    if row is None:
        errors[field] = f"{model.__name__} not found"
    return row


def checkout(user_id: int, payload: dict) -> dict:
    """
    Create an order from the caller's cart.

    email/phone/address default to the user's email and profile; a missing
    phone or address with no profile fallback is a ValidationError.
    """
    payload = payload or {}
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")

    errors: dict[str, str] = {}
    payment = _lookup_id(PaymentMethod, payload.get("payment_method_id"), "payment_method_id", errors)
    shipping = _lookup_id(Shipping, payload.get("shipping_id"), "shipping_id", errors)

    profile = db.session.query(Profile).filter(Profile.user_id == user_id).one_or_none()
    email = str(payload.get("email") or "").strip() or user.email
    phone = str(payload.get("phone") or "").strip() or (profile.phone if profile else None)
    address = str(payload.get("address") or "").strip() or (profile.address if profile else None)

    email_error = validate_email(email)
    if email_error:
        errors["email"] = email_error
    if not phone:
        errors["phone"] = "Phone must be provided"
    if not address:
        errors["address"] = "Address must be provided"
    if errors:
        raise ValidationError(errors)

    lines = (
        db.session.query(CartItem)
        .filter(CartItem.user_id == user_id)
        .order_by(CartItem.id.asc())
        .all()
    )
    if not lines:
        raise ValidationError({"cart": "Cart is empty"})

    with atomic("Order number already exists"):
        status = db.session.query(Status).filter(Status.name == DEFAULT_STATUS).one_or_none()
        if status is None:
            status = Status(name=DEFAULT_STATUS)
            db.session.add(status)
            db.session.flush()

        product_ids = sorted({line.product_id for line in lines})
        products = {
            p.id: p for p in lock_for_update(
                db.session.query(Product).filter(Product.id.in_(product_ids))
            ).all()
        }

        wanted: dict[int, int] = defaultdict(int)
        for line in lines:
            wanted[line.product_id] += line.quantity
        for pid, qty in wanted.items():
            product = products.get(pid)
            if product is None or product.deleted_at is not None:
                raise ValidationError({"cart": f"Product {pid} is no longer available"})
            if product.stock < qty:
                raise ValidationError({"cart": f"Insufficient stock for {product.title}"})

        tx = Transaction(
            order_number=_new_order_number(),
            user_id=user_id,
            status_id=status.id,
            payment_method_id=payment.id,
            shipping_id=shipping.id,
            email=email,
            phone=phone,
            address=address,
        )
        db.session.add(tx)
        db.session.flush()

        for line in lines:
            product = products[line.product_id]
            size = db.session.get(Size, line.size_id) if line.size_id else None
            unit_price = float(product.base_price or 0) + (float(size.additional_price or 0) if size else 0.0)
            db.session.add(TransactionItem(
                transaction_id=tx.id,
                product_id=product.id,
                size_id=line.size_id,
                quantity=line.quantity,
                price=unit_price,
            ))

        for pid, qty in wanted.items():
            products[pid].stock -= qty

        db.session.query(CartItem).filter(CartItem.user_id == user_id).delete(synchronize_session=False)

    product_service.invalidate_cache()
    current_app.logger.info("User %s checked out transaction %s", user_id, tx.id)
    return history_detail(user_id, tx.id)


# -----------------------------------------------------------------------------
# Lookups
# -----------------------------------------------------------------------------


def list_payment_methods() -> list[dict]:
    return [pm.to_dict() for pm in db.session.query(PaymentMethod).order_by(PaymentMethod.id.asc()).all()]


def list_shippings() -> list[dict]:
    return [s.to_dict() for s in db.session.query(Shipping).order_by(Shipping.id.asc()).all()]
