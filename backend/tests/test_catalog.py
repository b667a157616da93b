"""Public storefront: filter, favorites and product detail."""

import pytest

from coffeeshop.models import Category, ProductImage, ProductSize, RecommendedProduct, Size, Variant


@pytest.fixture
def menu(seed, make_product):
    coffee = seed.query(Variant).filter_by(name="Coffee").one()
    food = seed.query(Variant).filter_by(name="Food").one()
    drinks = Category(name="Drinks")
    snacks = Category(name="Snacks")
    seed.add_all([drinks, snacks])
    seed.commit()

    latte = make_product(title="Latte", base_price=25000, category_id=drinks.id, variant_id=coffee.id,
                         is_favorite=True, description="Milky espresso")
    mocha = make_product(title="Mocha", base_price=30000, category_id=drinks.id, variant_id=coffee.id)
    croissant = make_product(title="Croissant", base_price=18000, category_id=snacks.id, variant_id=food.id,
                             is_favorite=True)

    regular = seed.query(Size).filter_by(name="Regular").one()
    large = seed.query(Size).filter_by(name="Large").one()
    seed.add_all([
        ProductSize(product_id=latte.id, size_id=regular.id),
        ProductSize(product_id=latte.id, size_id=large.id),
        ProductSize(product_id=croissant.id, size_id=regular.id),
        ProductImage(product_id=latte.id, image="latte-1.png"),
        ProductImage(product_id=latte.id, image="latte-2.png"),
        RecommendedProduct(product_id=latte.id, recommended_id=mocha.id),
        RecommendedProduct(product_id=latte.id, recommended_id=croissant.id),
    ])
    seed.commit()
    return {"drinks": drinks, "snacks": snacks, "latte": latte, "mocha": mocha, "croissant": croissant}


def _titles(resp):
    return [item["title"] for item in resp.get_json()["data"]["items"]]


def test_filter_defaults_to_name_order(client, menu):
    resp = client.get("/products")
    assert resp.status_code == 200
    assert _titles(resp) == ["Croissant", "Latte", "Mocha"]

    latte = resp.get_json()["data"]["items"][1]
    assert latte["image"] == "latte-1.png"
    assert latte["variant"] == "Coffee"
    assert latte["sizes"] == ["Regular", "Large"]


def test_filter_by_category_favorite_and_price(client, menu):
    drinks = menu["drinks"].id
    assert _titles(client.get(f"/products?cat={drinks}")) == ["Latte", "Mocha"]
    assert _titles(client.get("/products?favorite=true")) == ["Croissant", "Latte"]
    assert _titles(client.get("/products?price_min=20000&price_max=26000")) == ["Latte"]
    assert _titles(client.get("/products?sortby=baseprice")) == ["Croissant", "Latte", "Mocha"]


def test_filter_text_search_and_pagination(client, menu):
    assert _titles(client.get("/products?q=espresso")) == ["Latte"]

    resp = client.get("/products?limit=2&page=2")
    data = resp.get_json()["data"]
    assert _titles(resp) == ["Mocha"]
    assert data["pagination"] == {"page": 2, "limit": 2, "totalItems": 3, "totalPages": 2}
    assert data["links"]["next"] is None
    assert data["links"]["back"] is not None


def test_favorites(client, menu, user_headers):
    resp = client.get("/favorite-products", headers=user_headers)
    assert resp.status_code == 200
    assert {p["title"] for p in resp.get_json()["data"]} == {"Latte", "Croissant"}


def test_detail_includes_same_variant_recommendations(client, menu, user_headers):
    resp = client.get(f"/products/{menu['latte'].id}", headers=user_headers)
    assert resp.status_code == 200
    detail = resp.get_json()["data"]
    assert detail["variant"]["name"] == "Coffee"
    assert [img["image"] for img in detail["images"]] == ["latte-1.png", "latte-2.png"]
    assert [s["name"] for s in detail["sizes"]] == ["Regular", "Large"]
    # Croissant is recommended but belongs to another variant
    assert [r["title"] for r in detail["recommended"]] == ["Mocha"]


def test_food_detail_has_no_sizes(client, menu, user_headers):
    detail = client.get(f"/products/{menu['croissant'].id}", headers=user_headers).get_json()["data"]
    assert detail["sizes"] == []


def test_detail_not_found(client, user_headers):
    resp = client.get("/products/9999", headers=user_headers)
    assert resp.status_code == 404
    assert resp.get_json()["success"] is False


def test_unparsable_category_ids_are_ignored(client, menu):
    drinks = menu["drinks"].id
    resp = client.get(f"/products?cat=%C2%B2&cat=--5&cat={drinks}")
    assert resp.status_code == 200
    assert _titles(resp) == ["Latte", "Mocha"]

    assert _titles(client.get("/products?cat=%C2%B2")) == ["Croissant", "Latte", "Mocha"]


def test_detail_and_favorites_require_token(client, menu):
    assert client.get(f"/products/{menu['latte'].id}").status_code == 401
    assert client.get("/favorite-products").status_code == 401
    # The filtered listing stays public
    assert client.get("/products").status_code == 200
