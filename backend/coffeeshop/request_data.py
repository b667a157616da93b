# Overview: Helpers that read JSON or multipart request bodies into plain dicts.

from __future__ import annotations

from flask import g, request

from .exceptions import ValidationError

MULTIPART_TYPES = ("multipart/form-data", "application/x-www-form-urlencoded")


def is_form_request() -> bool:
    return (request.mimetype or "") in MULTIPART_TYPES


def read_payload(*, exclude: tuple[str, ...] = ()) -> dict:
    """
    JSON object body, or the form fields of a multipart/urlencoded body.

    Keys listed in `exclude` (list-valued fields read separately) are dropped.
    """
    if is_form_request():
        data = request.form.to_dict()
    else:
        data = request.get_json(silent=True)
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ValidationError({"body": "Request body must be a JSON object"})
        data = dict(data)
    for key in exclude:
        data.pop(key, None)
    return data


def read_list(name: str):
    """
    Raw value of a list field, or None when the request does not supply it.

    Form bodies may repeat the field (sizes=1&sizes=3) or send "1,3".
    """
    if is_form_request():
        if name not in request.form:
            return None
        return request.form.getlist(name)
    data = request.get_json(silent=True)
    if not isinstance(data, dict) or name not in data:
        return None
    return data[name]


def read_files(name: str):
    """Uploaded files under `name`, or None when the field is absent."""
    if name not in request.files:
        return None
    return [f for f in request.files.getlist(name) if f and f.filename]


def current_user_id() -> int:
    return g.current_user.id
