# Overview: Health endpoint.

from flask import Blueprint, current_app
from sqlalchemy import text

from ..extensions import cache, db
from ..responses import success

system_bp = Blueprint("system", __name__)


@system_bp.get("/")
def health_route():
    """Liveness plus a cheap database round trip."""
    try:
        db.session.execute(text("SELECT 1"))
        database = "healthy"
    except Exception:
        current_app.logger.exception("Database health check failed")
        database = "unhealthy"

    return success("Backend is running well", {
        "database": database,
        "cache": "enabled" if cache.enabled else "disabled",
    })
