import pytest

from app.models.product import Product
from app.models.shop import Shop
from app.services.catalog_service import format_distance, haversine_km


def test_haversine_known_distance():
    # Benz Circle to Patamata, Vijayawada
    assert haversine_km(16.4971, 80.6562, 16.4880, 80.6680) == pytest.approx(1.61, abs=0.05)
    assert haversine_km(16.5, 80.6, 16.5, 80.6) == 0


def test_format_distance():
    assert format_distance(0.4567) == "457 m"
    assert format_distance(3.14159) == "3.14 km"


def test_shops_sorted_by_distance(client, session):
    far = Shop(name="Far", latitude=16.55, longitude=80.70)
    near = Shop(name="Near", latitude=16.50, longitude=80.66)
    unknown = Shop(name="Somewhere")
    closed = Shop(name="Closed", latitude=16.50, longitude=80.66, is_active=False)
    session.add_all([far, unknown, near, closed])
    session.commit()

    response = client.get("/api/shops", params={"lat": 16.4971, "lon": 80.6562})

    assert response.status_code == 200
    shops = response.json()["data"]
    assert [s["name"] for s in shops] == ["Near", "Far", "Somewhere"]
    assert shops[0]["distance"].endswith(" m") or shops[0]["distance"].endswith(" km")
    assert shops[-1]["distance"] is None


def test_shops_without_location(client, shop):
    shops = client.get("/api/shops").json()["data"]

    assert [s["id"] for s in shops] == [shop.id]
    assert shops[0]["distance"] is None


def test_get_shop(client, shop):
    assert client.get(f"/api/shops/{shop.id}").json()["data"]["name"] == shop.name
    assert client.get("/api/shops/999").status_code == 404


def test_product_filters(client, session, shop, product):
    session.add_all([
        Product(shop_id=shop.id, name="Mutton Keema", category="mutton", price=520),
        Product(name="Rohu Fish", category="fish", price=300),
        Product(name="Hidden", category="fish", price=1, is_available=False),
    ])
    session.commit()

    def names(**params):
        response = client.get("/api/products", params=params)
        assert response.status_code == 200
        return sorted(p["name"] for p in response.json()["data"])

    assert names() == ["Chicken Curry Cut", "Mutton Keema", "Rohu Fish"]
    assert names(category="fish") == ["Rohu Fish"]
    assert names(shopId=shop.id) == ["Chicken Curry Cut", "Mutton Keema"]
    assert names(search="curry") == ["Chicken Curry Cut"]


def test_products_by_category_and_id(client, product):
    by_category = client.get("/api/products/category/chicken").json()["data"]
    single = client.get(f"/api/products/{product.id}").json()["data"]

    assert [p["id"] for p in by_category] == [product.id]
    assert single["pricePerKg"] == 360
    assert single["image"] == product.image_url
    assert client.get("/api/products/999").status_code == 404


def test_addons(client, addon):
    addons = client.get("/api/addons").json()["data"]

    assert addons == [{"id": addon.id, "name": "Extra masala", "price": 20, "selected": False}]
    assert client.get(f"/api/addons/{addon.id}").status_code == 200
    assert client.get("/api/addons/999").status_code == 404


def test_health_and_index(client):
    health = client.get("/health").json()
    assert health["status"] == "ok"
    assert health["database"] == "ok"

    assert client.get("/api").json()["endpoints"]["orders"] == "/api/orders"
