from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z

FOOD_VARIANT = "Food"


class Category(db.Model):
    __tablename__ = "categories"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Variant(db.Model):
    """Product family such as Coffee, Non Coffee or Food."""
    __tablename__ = "variants"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(50), nullable=False, unique=True)

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name}


class Size(db.Model):
    __tablename__ = "sizes"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(20), nullable=False, unique=True)
    additional_price = db.Column(db.Numeric(12, 2, asdecimal=False), nullable=False, default=0)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "additional_price": float(self.additional_price or 0),
        }


class Product(db.Model):
    """
    Catalog product.

    Images and sizes are NOT mapped as relationships: they are loaded with a
    dedicated query keyed by product id (see services.product_service).
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_category_id", "category_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(150), nullable=False)
    description = db.Column(db.Text, nullable=True)
    base_price = db.Column(db.Numeric(12, 2, asdecimal=False), nullable=False)
    stock = db.Column(db.Integer, nullable=False, default=0)
    is_favorite = db.Column(db.Boolean, nullable=False, default=False)

    category_id = db.Column(db.Integer, db.ForeignKey("categories.id"), nullable=True)
    variant_id = db.Column(db.Integer, db.ForeignKey("variants.id"), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )
    deleted_at = db.Column(db.DateTime(timezone=True), nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description or "",
            "base_price": float(self.base_price or 0),
            "stock": self.stock,
            "is_favorite": bool(self.is_favorite),
            "category_id": self.category_id,
            "variant_id": self.variant_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class ProductImage(db.Model):
    """Product image file; hidden from every view once deleted_at is set."""
    __tablename__ = "product_images"
    __table_args__ = (
        db.Index("ix_product_images_product_id", "product_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False)
    image = db.Column(db.String(255), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )
    deleted_at = db.Column(db.DateTime(timezone=True), nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "image": self.image,
            "updated_at": to_utc_z(self.updated_at),
        }


class ProductSize(db.Model):
    __tablename__ = "product_sizes"

    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), primary_key=True)
    size_id = db.Column(db.Integer, db.ForeignKey("sizes.id"), primary_key=True)


class RecommendedProduct(db.Model):
    __tablename__ = "recommended_products"

    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), primary_key=True)
    recommended_id = db.Column(db.Integer, db.ForeignKey("products.id"), primary_key=True)
