# Overview: Service-layer operations for admin user management and user profiles.

from __future__ import annotations

from flask import current_app
from werkzeug.datastructures import FileStorage

from ..exceptions import ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..listing import ListParams, ListSpec, paginate
from ..models import CartItem, ForgotPassword, Profile, ROLES, Transaction, User
from ..validation import validate_email, validate_password
from . import upload_service
from .auth_service import hash_password
from .persistence import atomic

IMAGE_FOLDER = "profiles"
PROFILE_FIELDS = ("phone", "address")

USER_LIST = ListSpec(
    sort_columns={
        "fullname": User.fullname,
        "email": User.email,
        "created_at": User.created_at,
    },
    search_columns=(User.fullname, User.email),
    default_sort="created_at",
    tiebreaker=User.id,
)


def _clean(payload: dict, key: str) -> str:
    return str(payload.get(key) or "").strip()


def _validate_user_payload(payload: dict, *, password_required: bool) -> dict:
    """Collect every field problem into one map before touching the database."""
    data = {
        "fullname": _clean(payload, "fullname"),
        "email": _clean(payload, "email").lower(),
        "role": _clean(payload, "role"),
        "password": payload.get("password"),
        "phone": _clean(payload, "phone"),
        "address": _clean(payload, "address"),
    }

    errors = {}
    if not data["fullname"]:
        errors["fullname"] = "Fullname is required"
    email_error = validate_email(data["email"])
    if email_error:
        errors["email"] = email_error
    if not data["role"]:
        errors["role"] = "Role is required"
    elif data["role"] not in ROLES:
        errors["role"] = f"Role must be one of: {', '.join(ROLES)}"
    password_error = validate_password(data["password"], required=password_required)
    if password_error:
        errors["password"] = password_error
    if errors:
        raise ValidationError(errors)
    return data


def load_profiles(user_ids: list[int]) -> dict[int, Profile]:
    if not user_ids:
        return {}
    rows = db.session.query(Profile).filter(Profile.user_id.in_(user_ids)).all()
    return {p.user_id: p for p in rows}


def serialize_users(users: list[User]) -> list[dict]:
    profiles = load_profiles([u.id for u in users])
    out = []
    for u in users:
        data = u.to_dict()
        profile = profiles.get(u.id)
        data["profile"] = profile.to_dict() if profile else None
        out.append(data)
    return out


def _get_user(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


def _email_taken(email: str, exclude_id: int | None = None) -> bool:
    query = db.session.query(User.id).filter(User.email == email)
    if exclude_id is not None:
        query = query.filter(User.id != exclude_id)
    return query.first() is not None


# -----------------------------------------------------------------------------
# Admin user management
# -----------------------------------------------------------------------------


def list_users(params: ListParams) -> tuple[list[dict], int]:
    rows, total = paginate(db.session.query(User), USER_LIST, params)
    return serialize_users(rows), total


def get_user(user_id: int) -> dict:
    return serialize_users([_get_user(user_id)])[0]


def create_user(payload: dict, image: FileStorage | None = None) -> dict:
    """Create a user and its profile (optional avatar, phone, address) atomically."""
    data = _validate_user_payload(payload, password_required=True)
    if _email_taken(data["email"]):
        raise ConflictError("Email already registered")

    image_name = upload_service.save_image(image, IMAGE_FOLDER) if image and image.filename else None
    user = User(
        fullname=data["fullname"],
        email=data["email"],
        password_hash=hash_password(data["password"]),
        role=data["role"],
    )
    try:
        with atomic("Email already registered"):
            db.session.add(user)
            db.session.flush()
            db.session.add(Profile(
                user_id=user.id,
                image=image_name,
                phone=data["phone"] or None,
                address=data["address"] or None,
            ))
    except Exception:
        upload_service.remove_files(IMAGE_FOLDER, [image_name])
        raise

    current_app.logger.info("Admin created user %s", user.id)
    return get_user(user.id)


def update_user(user_id: int, payload: dict, image: FileStorage | None = None) -> dict:
    """
    Replace fullname, email and role; password only changes when given.
    The profile image is replaced only when a new file is uploaded.
    """
    user = _get_user(user_id)
    data = _validate_user_payload(payload, password_required=False)
    if _email_taken(data["email"], exclude_id=user.id):
        raise ConflictError("Email already registered")

    image_name = upload_service.save_image(image, IMAGE_FOLDER) if image and image.filename else None
    profile = db.session.query(Profile).filter(Profile.user_id == user.id).one_or_none()
    old_image = profile.image if (profile and image_name) else None

    try:
        with atomic("Email already registered"):
            user.fullname = data["fullname"]
            user.email = data["email"]
            user.role = data["role"]
            if data["password"]:
                user.password_hash = hash_password(data["password"])

            if profile is None:
                profile = Profile(user_id=user.id)
                db.session.add(profile)
            for key in PROFILE_FIELDS:
                if key in payload:
                    setattr(profile, key, data[key] or None)
            if image_name:
                profile.image = image_name
    except Exception:
        upload_service.remove_files(IMAGE_FOLDER, [image_name])
        raise

    upload_service.remove_files(IMAGE_FOLDER, [old_image])
    return get_user(user.id)


def delete_user(user_id: int) -> None:
    user = _get_user(user_id)
    if db.session.query(Transaction.id).filter(Transaction.user_id == user_id).first():
        raise ConflictError("User has transactions and cannot be deleted")

    profile = db.session.query(Profile).filter(Profile.user_id == user_id).one_or_none()
    image = profile.image if profile else None
    with atomic():
        db.session.query(CartItem).filter(CartItem.user_id == user_id).delete(synchronize_session=False)
        db.session.query(ForgotPassword).filter(ForgotPassword.user_id == user_id).delete(
            synchronize_session=False
        )
        if profile is not None:
            db.session.delete(profile)
        db.session.delete(user)

    upload_service.remove_files(IMAGE_FOLDER, [image])
    current_app.logger.info("Deleted user %s", user_id)


# -----------------------------------------------------------------------------
# Own profile
# -----------------------------------------------------------------------------


def get_profile(user_id: int) -> dict:
    user = _get_user(user_id)
    profile = load_profiles([user.id]).get(user.id)
    data = {
        "user_id": user.id,
        "fullname": user.fullname,
        "email": user.email,
        "image": None,
        "phone": None,
        "address": None,
    }
    if profile is not None:
        data.update(profile.to_dict())
    return data


def update_profile(user_id: int, payload: dict, image: FileStorage | None = None) -> dict:
    """Partial update of the caller's own profile; fullname lives on the user row."""
    user = _get_user(user_id)
    payload = payload or {}

    fullname = payload.get("fullname")
    if fullname is not None and not str(fullname).strip():
        raise ValidationError({"fullname": "Fullname cannot be blank"})

    image_name = upload_service.save_image(image, IMAGE_FOLDER) if image and image.filename else None
    profile = db.session.query(Profile).filter(Profile.user_id == user.id).one_or_none()
    old_image = profile.image if (profile and image_name) else None

    try:
        with atomic():
            if fullname is not None:
                user.fullname = str(fullname).strip()
            if profile is None:
                profile = Profile(user_id=user.id)
                db.session.add(profile)
            for key in PROFILE_FIELDS:
                if key in payload:
                    setattr(profile, key, _clean(payload, key) or None)
            if image_name:
                profile.image = image_name
    except Exception:
        upload_service.remove_files(IMAGE_FOLDER, [image_name])
        raise

    upload_service.remove_files(IMAGE_FOLDER, [old_image])
    return get_profile(user.id)
