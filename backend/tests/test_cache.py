"""Admin product list caching through the Redis extension."""

import fnmatch

import pytest

from coffeeshop.extensions import cache


class FakeRedis:
    """In-memory stand-in for the redis-py calls the cache makes."""

    def __init__(self):
        self.store = {}

    def get(self, key):
        return self.store.get(key)

    def set(self, key, value, ex=None):
        self.store[key] = value

    def scan_iter(self, match="*"):
        return [k for k in list(self.store) if fnmatch.fnmatch(k, match)]

    def delete(self, key):
        return 1 if self.store.pop(key, None) is not None else 0


@pytest.fixture
def fake_redis(monkeypatch):
    fake = FakeRedis()
    monkeypatch.setattr(cache, "_client", fake)
    return fake


def test_list_is_cached_per_query(client, admin_headers, make_product, fake_redis):
    make_product(title="Latte")
    first = client.get("/admin/products?limit=5", headers=admin_headers)
    assert first.status_code == 200
    assert len(fake_redis.store) == 1
    key = next(iter(fake_redis.store))
    assert key.startswith("products:")

    client.get("/admin/products?limit=6", headers=admin_headers)
    assert len(fake_redis.store) == 2


def test_cached_payload_is_served(client, admin_headers, make_product, fake_redis):
    make_product(title="Latte")
    client.get("/admin/products", headers=admin_headers)

    # A row written behind the service's back stays invisible until invalidation
    make_product(title="Mocha")
    resp = client.get("/admin/products", headers=admin_headers)
    assert [p["title"] for p in resp.get_json()["data"]["items"]] == ["Latte"]


def test_writes_invalidate_cache(client, admin_headers, make_product, fake_redis):
    make_product(title="Latte")
    client.get("/admin/products", headers=admin_headers)
    assert fake_redis.store

    resp = client.post(
        "/admin/products",
        data={"title": "Mocha", "base_price": "30000", "stock": "4"},
        headers=admin_headers,
    )
    assert resp.status_code == 201
    assert fake_redis.store == {}

    listing = client.get("/admin/products", headers=admin_headers)
    assert {p["title"] for p in listing.get_json()["data"]["items"]} == {"Latte", "Mocha"}
