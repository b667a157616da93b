# Overview: Uniform {success, message, data} response envelope helpers.

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from flask import jsonify

T = TypeVar("T")


@dataclass
class Envelope(Generic[T]):
    """Every response body; each endpoint decides the concrete shape of ``data``."""
    success: bool
    message: str
    data: T | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"success": self.success, "message": self.message, "data": self.data}


def success(message: str, data: Any = None, status: int = 200):
    return jsonify(Envelope(True, message, data).to_dict()), status


def failure(message: str, status: int, data: Any = None):
    return jsonify(Envelope(False, message, data).to_dict()), status


def paged(message: str, items: list, pagination: dict, links: dict):
    return success(message, {"items": items, "pagination": pagination, "links": links})
