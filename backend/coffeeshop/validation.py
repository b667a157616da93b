from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Iterable

from sqlalchemy import Boolean, Integer, Numeric, String, Text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import DeclarativeMeta

from .exceptions import ConflictError, ValidationError

__all__ = [
    "ModelValidationPolicy",
    "validate_payload",
    "validate_email",
    "validate_password",
    "parse_id_list",
    "enforce_rules_product",
    "is_unique_violation",
    "ValidationError",
    "ConflictError",
]

MIN_PASSWORD_LENGTH = 6
MAX_PRICE = 999_999_999

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

_TRUE_STRINGS = {"1", "true", "yes", "on"}
_FALSE_STRINGS = {"0", "false", "no", "off", ""}


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields that must be present and non-blank on create
    """
    writable_fields: frozenset[str]
    required_on_create: frozenset[str] = field(default_factory=frozenset)


class _CoercionError(ValueError):
    pass


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _label(key: str) -> str:
    return key.replace("_", " ").capitalize()


def _coerce_value(col, value: Any):
    coltype = col.type

    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in _TRUE_STRINGS:
                return True
            if lowered in _FALSE_STRINGS:
                return False
        raise _CoercionError(f"{_label(col.key)} must be a boolean")

    # Integers - reject floats, decimals and scientific notation
    if isinstance(coltype, Integer):
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, str):
            stripped = value.strip()
            if re.fullmatch(r"-?\d+", stripped):
                return int(stripped)
        raise _CoercionError(f"{_label(col.key)} must be an integer")

    if isinstance(coltype, Numeric):
        if isinstance(value, bool):
            raise _CoercionError(f"{_label(col.key)} must be a number")
        if isinstance(value, (int, float)):
            return float(value)
        if isinstance(value, str):
            try:
                return float(value.strip())
            except ValueError:
                pass
        raise _CoercionError(f"{_label(col.key)} must be a number")

    if isinstance(coltype, (String, Text)):
        return str(value).strip()

    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes an incoming payload against SQLAlchemy column
    metadata and a policy allowlist.

    Every problem is collected into a field-keyed error map; a single
    ValidationError carrying the whole map is raised at the end.

    partial=False: create/replace semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError({"body": "Invalid request body"})

    cols = _columns_by_key(model)
    errors: dict[str, str] = {}
    patch: dict = {}

    for k in payload:
        if k not in policy.writable_fields or k not in cols:
            errors[k] = "Field not allowed"

    if not partial:
        for k in sorted(policy.required_on_create):
            raw = payload.get(k)
            if raw is None or (isinstance(raw, str) and not raw.strip()):
                errors[k] = f"{_label(k)} is required"

    for k, raw in payload.items():
        if k in errors:
            continue
        col = cols[k]

        if raw is None or (isinstance(raw, str) and raw.strip() == "" and not isinstance(col.type, (String, Text))):
            if not col.nullable and k in policy.required_on_create:
                errors[k] = f"{_label(k)} is required"
            else:
                patch[k] = None
            continue

        try:
            val = _coerce_value(col, raw)
        except _CoercionError as exc:
            errors[k] = str(exc)
            continue

        if isinstance(col.type, (String, Text)) and not col.nullable and val == "":
            errors[k] = f"{_label(k)} cannot be blank"
            continue

        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                errors[k] = f"{_label(k)} exceeds max length {col.type.length}"
                continue

        patch[k] = val

    if errors:
        raise ValidationError(errors)
    return patch


def validate_email(email: str | None) -> str | None:
    """Return an error message for a bad email, or None when it is acceptable."""
    if not email:
        return "Email is required"
    if not EMAIL_RE.match(email):
        return "Invalid email format"
    return None


def validate_password(password: str | None, *, required: bool = True) -> str | None:
    if password is None or password == "":
        return "Password is required" if required else None
    if not isinstance(password, str):
        return "Password must be a string"
    if len(password) < MIN_PASSWORD_LENGTH:
        return f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
    return None


def parse_id_list(raw: Any, field_name: str) -> list[int]:
    """
    Accept a JSON list of ids, a list of form values, or a comma-separated
    string ("1,3"). Duplicates are dropped, order is kept.
    """
    if raw is None:
        return []
    if isinstance(raw, (str, int)):
        items: Iterable[Any] = [raw]
    else:
        items = raw

    ids: list[int] = []
    for item in items:
        parts = item.split(",") if isinstance(item, str) else [item]
        for part in parts:
            if isinstance(part, str):
                part = part.strip()
                if not part:
                    continue
            if isinstance(part, bool):
                raise ValidationError({field_name: f"{_label(field_name)} must be a list of ids"})
            try:
                value = int(part)
            except (TypeError, ValueError):
                raise ValidationError({field_name: f"{_label(field_name)} must be a list of ids"})
            if value not in ids:
                ids.append(value)
    return ids


def enforce_rules_product(patch: dict) -> None:
    """Business rules that are not captured by SQLAlchemy metadata alone."""
    errors: dict[str, str] = {}
    price = patch.get("base_price")
    if price is not None:
        if price < 0:
            errors["base_price"] = "Base price must be >= 0"
        elif price > MAX_PRICE:
            errors["base_price"] = f"Base price cannot exceed {MAX_PRICE}"
    stock = patch.get("stock")
    if stock is not None and stock < 0:
        errors["stock"] = "Stock must be >= 0"
    if errors:
        raise ValidationError(errors)


def is_unique_violation(exc: IntegrityError) -> bool:
    """Classify an IntegrityError as a duplicate-key / unique-constraint failure."""
    text = str(getattr(exc, "orig", exc)).lower()
    return "duplicate key" in text or "unique constraint" in text
