"""
Pytest fixtures for coffee shop backend tests.

Provides the app on in-memory SQLite, a per-test clean database, seeded
lookup tables, admin/user accounts with bearer tokens and image payloads.
"""

import io

import pytest

from coffeeshop import create_app
from coffeeshop.cli import seed_lookups
from coffeeshop.config import TestingConfig
from coffeeshop.extensions import db
from coffeeshop.models import Category, Product, Profile, ROLE_ADMIN, ROLE_USER, User
from coffeeshop.services.auth_service import hash_password
from coffeeshop.services.token_service import issue_token

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64
JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"\x00" * 64


@pytest.fixture(scope='session')
def app(tmp_path_factory):
    """Create application for testing."""
    upload_dir = tmp_path_factory.mktemp("uploads")

    class Config(TestingConfig):
        UPLOAD_FOLDER = str(upload_dir)

    app = create_app(Config)

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def seed(db_session):
    """Default statuses, sizes, variants, payment methods and shippings."""
    seed_lookups()
    return db_session


def _make_user(session, *, fullname, email, role, password="secret123", phone=None, address=None):
    user = User(fullname=fullname, email=email, password_hash=hash_password(password), role=role)
    session.add(user)
    session.flush()
    session.add(Profile(user_id=user.id, phone=phone, address=address))
    session.commit()
    return user


@pytest.fixture(scope='function')
def admin_user(db_session):
    return _make_user(db_session, fullname="Admin Barista", email="admin@coffee.test", role=ROLE_ADMIN)


@pytest.fixture(scope='function')
def customer(db_session):
    return _make_user(
        db_session,
        fullname="Casey Customer",
        email="casey@coffee.test",
        role=ROLE_USER,
        phone="0811111111",
        address="1 Bean Street",
    )


@pytest.fixture(scope='function')
def admin_headers(admin_user):
    return {"Authorization": f"Bearer {issue_token(admin_user.id, admin_user.email, admin_user.role)}"}


@pytest.fixture(scope='function')
def user_headers(customer):
    return {"Authorization": f"Bearer {issue_token(customer.id, customer.email, customer.role)}"}


@pytest.fixture(scope='function')
def category(db_session):
    cat = Category(name="Coffee")
    db_session.add(cat)
    db_session.commit()
    return cat


@pytest.fixture(scope='function')
def make_product(db_session):
    def _make(title="Latte", base_price=25000, stock=10, **kwargs):
        product = Product(title=title, base_price=base_price, stock=stock, **kwargs)
        db_session.add(product)
        db_session.commit()
        return product
    return _make


@pytest.fixture
def png_file():
    def _file(name="photo.png"):
        return (io.BytesIO(PNG_BYTES), name)
    return _file


@pytest.fixture
def jpeg_file():
    def _file(name="photo.jpg"):
        return (io.BytesIO(JPEG_BYTES), name)
    return _file
