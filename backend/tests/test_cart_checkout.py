"""
Cart, checkout and order history tests.

Verifies:
- Cart lines merge, respect stock and report subtotals/total
- Checkout snapshots prices, decrements stock and empties the cart
- History is scoped to the caller
"""

import pytest

from coffeeshop.models import CartItem, PaymentMethod, Product, Shipping, Size, TransactionItem
from coffeeshop.services.token_service import issue_token


@pytest.fixture
def latte(make_product):
    return make_product(title="Latte", base_price=25000, stock=5)


@pytest.fixture
def large(seed):
    return seed.query(Size).filter_by(name="Large").one()


def _checkout_body(seed, **extra):
    body = {
        "payment_method_id": seed.query(PaymentMethod).first().id,
        "shipping_id": seed.query(Shipping).first().id,
    }
    body.update(extra)
    return body


def test_add_and_view_cart(client, user_headers, latte, large):
    resp = client.post(
        "/cart",
        json=[{"product_id": latte.id, "size_id": large.id, "quantity": 2}],
        headers=user_headers,
    )
    assert resp.status_code == 200

    # Same line again merges quantities
    client.post("/cart", json={"product_id": latte.id, "size_id": large.id, "quantity": 1}, headers=user_headers)

    cart = client.get("/cart", headers=user_headers).get_json()["data"]
    assert len(cart["items"]) == 1
    line = cart["items"][0]
    assert line["quantity"] == 3
    assert line["unit_price"] == 35000
    assert line["subtotal"] == 105000
    assert cart["total"] == 105000


def test_cart_rejects_quantity_over_stock(client, user_headers, latte, db_session):
    resp = client.post("/cart", json={"product_id": latte.id, "quantity": 6}, headers=user_headers)
    assert resp.status_code == 400
    assert resp.get_json()["data"] == {"quantity": "Quantity exceeds available stock"}
    assert db_session.query(CartItem).count() == 0


def test_cart_validation(client, user_headers, db_session):
    assert client.post("/cart", json=[], headers=user_headers).status_code == 400
    assert client.post("/cart", json={"product_id": 999, "quantity": 1}, headers=user_headers).status_code == 400
    resp = client.post("/cart", json={"product_id": "x", "quantity": 0}, headers=user_headers)
    assert resp.status_code == 400


def test_clear_cart(client, user_headers, latte):
    client.post("/cart", json={"product_id": latte.id, "quantity": 1}, headers=user_headers)
    resp = client.delete("/cart", headers=user_headers)
    assert resp.get_json()["data"] == {"removed": 1}
    assert client.get("/cart", headers=user_headers).get_json()["data"] == {"items": [], "total": 0}


def test_checkout_flow(client, user_headers, latte, large, seed, customer):
    client.post("/cart", json={"product_id": latte.id, "quantity": 2}, headers=user_headers)
    client.post("/cart", json={"product_id": latte.id, "size_id": large.id, "quantity": 1}, headers=user_headers)

    resp = client.post("/transactions", json=_checkout_body(seed), headers=user_headers)
    assert resp.status_code == 201
    order = resp.get_json()["data"]
    assert order["total"] == 2 * 25000 + 35000
    assert order["status"] == "on progress"
    # Contact details fall back to the account email and profile
    assert order["email"] == customer.email
    assert order["address"] == "1 Bean Street"

    assert seed.get(Product, latte.id).stock == 2
    assert seed.query(CartItem).filter_by(user_id=customer.id).count() == 0
    prices = sorted(i.price for i in seed.query(TransactionItem).filter_by(transaction_id=order["id"]))
    assert prices == [25000, 35000]

    again = client.post("/transactions", json=_checkout_body(seed), headers=user_headers)
    assert again.status_code == 400
    assert "cart" in again.get_json()["data"]


def test_checkout_requires_lookups(client, user_headers, latte, seed):
    client.post("/cart", json={"product_id": latte.id, "quantity": 1}, headers=user_headers)
    resp = client.post("/transactions", json={"payment_method_id": 999}, headers=user_headers)
    assert resp.status_code == 400
    assert set(resp.get_json()["data"]) == {"payment_method_id", "shipping_id"}


def test_checkout_fails_when_stock_ran_out(client, user_headers, latte, seed):
    client.post("/cart", json={"product_id": latte.id, "quantity": 3}, headers=user_headers)
    latte.stock = 1
    seed.commit()

    resp = client.post("/transactions", json=_checkout_body(seed), headers=user_headers)
    assert resp.status_code == 400
    assert seed.get(Product, latte.id).stock == 1
    assert seed.query(CartItem).count() == 1


def test_history_is_scoped_to_caller(client, user_headers, admin_user, latte, seed):
    client.post("/cart", json={"product_id": latte.id, "quantity": 1}, headers=user_headers)
    order = client.post("/transactions", json=_checkout_body(seed), headers=user_headers).get_json()["data"]

    history = client.get("/history", headers=user_headers).get_json()["data"]
    assert [h["id"] for h in history["items"]] == [order["id"]]
    assert history["pagination"]["limit"] == 5

    filtered = client.get("/history?status=finish%20order", headers=user_headers).get_json()["data"]
    assert filtered["items"] == []

    detail = client.get(f"/history/{order['id']}", headers=user_headers)
    assert detail.status_code == 200
    assert len(detail.get_json()["data"]["order_items"]) == 1

    other = {"Authorization": f"Bearer {issue_token(admin_user.id, admin_user.email, admin_user.role)}"}
    assert client.get(f"/history/{order['id']}", headers=other).status_code == 404
