from decimal import Decimal

API = "/api/v1/products"

NEW_PRODUCT = {
    "code": "MOUSE001",
    "name": "Mouse Óptico USB",
    "category": "Periféricos",
    "brand": "Logitech",
    "cost_price": "25.00",
    "sale_price": "45.00",
    "current_stock": 50,
    "minimum_stock": 5
}


def test_admin_creates_product(client, admin_headers):
    response = client.post(API, json=NEW_PRODUCT, headers=admin_headers)
    assert response.status_code == 201
    product = response.json()["product"]
    assert product["code"] == "MOUSE001"
    assert product["is_active"] is True
    assert Decimal(str(product["profit_margin"])) == Decimal("80.00")


def test_seller_cannot_create_product(client, seller_headers):
    response = client.post(API, json=NEW_PRODUCT, headers=seller_headers)
    assert response.status_code == 403


def test_duplicate_code(client, admin_headers, make_product):
    make_product(code="MOUSE001")
    response = client.post(API, json=NEW_PRODUCT, headers=admin_headers)
    assert response.status_code == 409
    assert response.json()["error_code"] == "DUPLICATE_PRODUCT_CODE"


def test_invalid_price_rejected(client, admin_headers):
    response = client.post(API, json={**NEW_PRODUCT, "sale_price": "0"}, headers=admin_headers)
    assert response.status_code == 422


def test_update_product(client, admin_headers, make_product):
    product = make_product(code="A1", price="5.00")
    other = make_product(code="B1")

    response = client.put(f"{API}/{product.id}", json={"sale_price": "6.50", "brand": "Bic"}, headers=admin_headers)
    body = response.json()["product"]
    assert Decimal(str(body["sale_price"])) == Decimal("6.50")
    assert body["brand"] == "Bic"

    response = client.put(f"{API}/{product.id}", json={"code": other.code}, headers=admin_headers)
    assert response.status_code == 409

    response = client.put(f"{API}/999", json={"name": "X"}, headers=admin_headers)
    assert response.status_code == 404


def test_get_by_code(client, seller_headers, make_product):
    make_product(code="CAFE001")
    response = client.get(f"{API}/code/CAFE001", headers=seller_headers)
    assert response.json()["product"]["code"] == "CAFE001"

    response = client.get(f"{API}/code/NOPE", headers=seller_headers)
    assert response.json()["error_code"] == "PRODUCT_NOT_FOUND"


def test_search_and_pagination(client, seller_headers, make_product):
    make_product(code="MOUSE001", name="Mouse Óptico", brand="Logitech")
    make_product(code="MOUSE002", name="Mouse Gamer", brand="Razer")
    make_product(code="CAFE001", name="Café Molido", category="Bebidas")

    body = client.get(API, params={"q": "mouse"}, headers=seller_headers).json()
    assert body["total"] == 2

    body = client.get(API, params={"q": "razer"}, headers=seller_headers).json()
    assert [p["code"] for p in body["items"]] == ["MOUSE002"]

    body = client.get(API, params={"size": 2, "page": 2}, headers=seller_headers).json()
    assert body["total"] == 3
    assert body["pages"] == 2
    assert len(body["items"]) == 1


def test_deactivate_hides_from_search(client, admin_headers, make_product):
    product = make_product(code="OLD")

    response = client.delete(f"{API}/{product.id}", headers=admin_headers)
    assert response.json()["product"]["is_active"] is False

    assert client.get(API, headers=admin_headers).json()["total"] == 0
    assert client.get(API, params={"active_only": False}, headers=admin_headers).json()["total"] == 1

    response = client.post(f"{API}/{product.id}/activate", headers=admin_headers)
    assert response.json()["product"]["is_active"] is True


def test_stock_lists(client, seller_headers, make_product):
    make_product(code="OK", stock=50, minimum_stock=5)
    make_product(code="LOW", stock=2, minimum_stock=10)
    make_product(code="ZERO", stock=0, minimum_stock=5)

    low = client.get(f"{API}/low-stock", headers=seller_headers).json()
    assert sorted(p["code"] for p in low["products"]) == ["LOW", "ZERO"]

    out = client.get(f"{API}/out-of-stock", headers=seller_headers).json()
    assert [p["code"] for p in out["products"]] == ["ZERO"]


def test_adjust_stock(client, admin_headers, make_product):
    product = make_product(stock=3)

    response = client.post(f"{API}/{product.id}/stock", json={"delta": 7, "notes": "compra"}, headers=admin_headers)
    assert response.json()["product"]["current_stock"] == 10

    response = client.post(f"{API}/{product.id}/stock", json={"delta": -11}, headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["error_code"] == "INSUFFICIENT_STOCK"

    response = client.get(f"{API}/{product.id}", headers=admin_headers)
    assert response.json()["product"]["current_stock"] == 10


def test_categories_and_brands(client, seller_headers, make_product):
    make_product(code="A", category="Bebidas", brand="Pilão")
    make_product(code="B", category="Audio", brand="JBL")
    make_product(code="C", category="Bebidas", brand="JBL")

    assert client.get(f"{API}/categories", headers=seller_headers).json()["values"] == ["Audio", "Bebidas"]
    assert client.get(f"{API}/brands", headers=seller_headers).json()["values"] == ["JBL", "Pilão"]
