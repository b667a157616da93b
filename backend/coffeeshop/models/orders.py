from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z

DEFAULT_STATUS = "on progress"


class Status(db.Model):
    __tablename__ = "status"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(50), nullable=False, unique=True)

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name}


class PaymentMethod(db.Model):
    __tablename__ = "payment_methods"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(50), nullable=False, unique=True)
    image = db.Column(db.String(255), nullable=True)

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "image": self.image}


class Shipping(db.Model):
    __tablename__ = "shippings"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(50), nullable=False, unique=True)

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name}


class Transaction(db.Model):
    """
    Customer order.

    The order total is never stored: it is summed from transaction_items
    (price * quantity) whenever the order is read.
    """
    __tablename__ = "transactions"
    __table_args__ = (
        db.Index("ix_transactions_user_id", "user_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_number = db.Column(db.String(40), nullable=False, unique=True)

    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    status_id = db.Column(db.Integer, db.ForeignKey("status.id"), nullable=False)
    payment_method_id = db.Column(db.Integer, db.ForeignKey("payment_methods.id"), nullable=False)
    shipping_id = db.Column(db.Integer, db.ForeignKey("shippings.id"), nullable=False)

    email = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(32), nullable=False)
    address = db.Column(db.Text, nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    user = db.relationship("User")
    status = db.relationship("Status")
    payment_method = db.relationship("PaymentMethod")
    shipping = db.relationship("Shipping")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_number": self.order_number,
            "status_id": self.status_id,
            "status": self.status.name if self.status else None,
            "user_id": self.user_id,
            "user_name": self.user.fullname if self.user else None,
            "payment_method_id": self.payment_method_id,
            "payment_method": self.payment_method.name if self.payment_method else None,
            "shipping_id": self.shipping_id,
            "shipping": self.shipping.name if self.shipping else None,
            "email": self.email,
            "phone": self.phone,
            "address": self.address,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class TransactionItem(db.Model):
    """Order line; price is the unit price (base + size surcharge) at checkout time."""
    __tablename__ = "transaction_items"
    __table_args__ = (
        db.Index("ix_transaction_items_transaction_id", "transaction_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    transaction_id = db.Column(db.Integer, db.ForeignKey("transactions.id"), nullable=False)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False)
    size_id = db.Column(db.Integer, db.ForeignKey("sizes.id"), nullable=True)
    quantity = db.Column(db.Integer, nullable=False)
    price = db.Column(db.Numeric(12, 2, asdecimal=False), nullable=False)


class CartItem(db.Model):
    __tablename__ = "carts"
    __table_args__ = (
        db.Index("ix_carts_user_id", "user_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False)
    size_id = db.Column(db.Integer, db.ForeignKey("sizes.id"), nullable=True)
    variant_id = db.Column(db.Integer, db.ForeignKey("variants.id"), nullable=True)
    quantity = db.Column(db.Integer, nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )
