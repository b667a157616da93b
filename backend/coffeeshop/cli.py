# Overview: Flask CLI command groups for bootstrap and user administration.

# backend/coffeeshop/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init-db
#   Create all tables (use `flask db upgrade` when running migrations).
# - python -m flask system seed
#   Idempotently insert statuses, sizes, variants, payment methods and shippings.
#
# Users:
# - python -m flask users create-admin --fullname "Admin" --email admin@coffeeshop.local --password "secret123"
#   Create an administrator (prompts if options are omitted).
# - python -m flask users list
#   List all users with roles.

import click
from flask.cli import with_appcontext

from .exceptions import CoffeeShopError
from .extensions import db
from .models import PaymentMethod, ROLE_ADMIN, Shipping, Size, Status, User, Variant
from .services import user_service

DEFAULT_STATUSES = ("on progress", "sending goods", "finish order", "cancelled")
DEFAULT_SIZES = (("Regular", 0), ("Medium", 5000), ("Large", 10000))
DEFAULT_VARIANTS = ("Coffee", "Non Coffee", "Food")
DEFAULT_PAYMENT_METHODS = ("Bank Transfer", "E-Wallet", "Cash On Delivery")
DEFAULT_SHIPPINGS = ("Dine In", "Door Delivery", "Pick Up")


def seed_lookups() -> dict[str, int]:
    """Insert missing lookup rows; returns how many rows each table gained."""
    created = {"status": 0, "sizes": 0, "variants": 0, "payment_methods": 0, "shippings": 0}

    for name in DEFAULT_STATUSES:
        if not db.session.query(Status).filter_by(name=name).first():
            db.session.add(Status(name=name))
            created["status"] += 1
    for name, extra in DEFAULT_SIZES:
        if not db.session.query(Size).filter_by(name=name).first():
            db.session.add(Size(name=name, additional_price=extra))
            created["sizes"] += 1
    for name in DEFAULT_VARIANTS:
        if not db.session.query(Variant).filter_by(name=name).first():
            db.session.add(Variant(name=name))
            created["variants"] += 1
    for name in DEFAULT_PAYMENT_METHODS:
        if not db.session.query(PaymentMethod).filter_by(name=name).first():
            db.session.add(PaymentMethod(name=name))
            created["payment_methods"] += 1
    for name in DEFAULT_SHIPPINGS:
        if not db.session.query(Shipping).filter_by(name=name).first():
            db.session.add(Shipping(name=name))
            created["shippings"] += 1

    db.session.commit()
    return created


@click.group('system')
def system_group():
    """System bootstrap commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Database tables created")


@system_group.command('seed')
@with_appcontext
def seed():
    """Insert default statuses, sizes, variants, payment methods and shippings."""
    created = seed_lookups()
    for table, count in created.items():
        click.echo(f"PASS {table}: {count} new row(s)")


@click.group('users')
def users_group():
    """User administration commands."""


@users_group.command('create-admin')
@click.option('--fullname', prompt=True)
@click.option('--email', prompt=True)
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
@with_appcontext
def create_admin(fullname, email, password):
    """Create an administrator account."""
    try:
        user = user_service.create_user({
            "fullname": fullname,
            "email": email,
            "password": password,
            "role": ROLE_ADMIN,
        })
    except CoffeeShopError as exc:
        details = f" {exc.data}" if exc.data else ""
        raise click.ClickException(f"{exc.message}{details}")
    click.echo(f"PASS Created admin {user['email']} (ID: {user['id']})")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users with their roles."""
    users = db.session.query(User).order_by(User.id.asc()).all()
    if not users:
        click.echo("No users found")
        return
    for u in users:
        click.echo(f"{u.id:>5}  {u.role:<6}  {u.email}  ({u.fullname})")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
