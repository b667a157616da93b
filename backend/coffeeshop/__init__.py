# backend/coffeeshop/__init__.py
from flask import Flask, request

from .config import Config
from .extensions import cache, db, migrate
from .logging_setup import configure_logging

LOCAL_FRONTEND_ORIGIN = "http://localhost:5173"


def create_app(config_object=Config) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config_object)

    configure_logging(app)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    cache.init_app(app)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.categories import categories_bp
    from .routes.products import products_bp
    from .routes.catalog import catalog_bp
    from .routes.users import users_bp
    from .routes.transactions import admin_transactions_bp, orders_bp
    from .routes.cart import cart_bp
    from .routes.profile import profile_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(categories_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(catalog_bp)
    app.register_blueprint(users_bp)
    app.register_blueprint(admin_transactions_bp)
    app.register_blueprint(orders_bp)
    app.register_blueprint(cart_bp)
    app.register_blueprint(profile_bp)

    from .error_handlers import register_error_handlers
    register_error_handlers(app)

    allowed_origins = {LOCAL_FRONTEND_ORIGIN} | {
        o.strip() for o in (app.config.get("ALLOW_ORIGIN") or "").split(",") if o.strip()
    }

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if origin in allowed_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,PATCH,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
