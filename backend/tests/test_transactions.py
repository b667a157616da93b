"""
Admin transaction tests.

Verifies:
- The total is summed from items at read time and is sortable
- Status update reports the outcome through the HTTP status code
- Delete removes items; a second delete is 404
"""

import pytest

from coffeeshop.models import PaymentMethod, Shipping, Status, Transaction, TransactionItem


@pytest.fixture
def orders(seed, customer, make_product):
    """Two orders: ORD-A totals 2*25000 + 1*30000, ORD-B totals 1*15000."""
    latte = make_product(title="Latte", base_price=25000)
    mocha = make_product(title="Mocha", base_price=30000)
    status = seed.query(Status).filter_by(name="on progress").one()
    payment = seed.query(PaymentMethod).first()
    shipping = seed.query(Shipping).first()

    def _order(number, lines):
        tx = Transaction(
            order_number=number,
            user_id=customer.id,
            status_id=status.id,
            payment_method_id=payment.id,
            shipping_id=shipping.id,
            email=customer.email,
            phone="0811",
            address="1 Bean Street",
        )
        seed.add(tx)
        seed.flush()
        for product, qty, price in lines:
            seed.add(TransactionItem(transaction_id=tx.id, product_id=product.id, quantity=qty, price=price))
        seed.commit()
        return tx

    a = _order("ORD-A", [(latte, 2, 25000), (mocha, 1, 30000)])
    b = _order("ORD-B", [(latte, 1, 15000)])
    return a, b


def test_list_includes_computed_total(client, admin_headers, orders):
    resp = client.get("/admin/transactions?sort=total&order=desc", headers=admin_headers)
    assert resp.status_code == 200
    items = resp.get_json()["data"]["items"]
    assert [t["order_number"] for t in items] == ["ORD-A", "ORD-B"]
    assert [t["total"] for t in items] == [80000, 15000]
    assert items[0]["user_name"] == "Casey Customer"
    assert items[0]["status"] == "on progress"
    assert {i["title"] for i in items[0]["order_items"]} == {"Latte", "Mocha"}


def test_search_by_order_number_and_customer(client, admin_headers, orders):
    resp = client.get("/admin/transactions?search=ord-b", headers=admin_headers)
    assert [t["order_number"] for t in resp.get_json()["data"]["items"]] == ["ORD-B"]

    resp = client.get("/admin/transactions?search=casey", headers=admin_headers)
    assert resp.get_json()["data"]["pagination"]["totalItems"] == 2


def test_get_transaction(client, admin_headers, orders):
    a, _ = orders
    resp = client.get(f"/admin/transactions/{a.id}", headers=admin_headers)
    data = resp.get_json()["data"]
    assert data["total"] == 80000
    assert len(data["order_items"]) == 2

    assert client.get("/admin/transactions/9999", headers=admin_headers).status_code == 404


def test_update_status(client, admin_headers, orders, seed):
    a, _ = orders
    finished = seed.query(Status).filter_by(name="finish order").one()

    resp = client.patch(f"/admin/transactions/{a.id}/status", json={"status_id": finished.id}, headers=admin_headers)
    assert resp.status_code == 200
    assert resp.get_json()["data"] == {"transactionId": a.id, "newStatus": "finish order"}

    legacy_key = client.patch(f"/admin/transactions/{a.id}/status", json={"statusId": finished.id}, headers=admin_headers)
    assert legacy_key.status_code == 200


def test_update_status_failures_use_http_codes(client, admin_headers, orders, seed):
    a, _ = orders
    status_id = seed.query(Status).first().id

    missing_body = client.patch(f"/admin/transactions/{a.id}/status", json={}, headers=admin_headers)
    assert missing_body.status_code == 400

    unknown_status = client.patch(f"/admin/transactions/{a.id}/status", json={"status_id": 999}, headers=admin_headers)
    assert unknown_status.status_code == 400
    assert "status_id" in unknown_status.get_json()["data"]

    unknown_tx = client.patch("/admin/transactions/9999/status", json={"status_id": status_id}, headers=admin_headers)
    assert unknown_tx.status_code == 404


def test_delete_transaction_twice(client, admin_headers, orders, seed):
    a, _ = orders
    assert client.delete(f"/admin/transactions/{a.id}", headers=admin_headers).status_code == 200
    assert seed.query(TransactionItem).filter_by(transaction_id=a.id).count() == 0
    assert client.delete(f"/admin/transactions/{a.id}", headers=admin_headers).status_code == 404
