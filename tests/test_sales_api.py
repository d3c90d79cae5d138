from datetime import date
from decimal import Decimal

import pytest

API = "/api/v1/sales"


def money(value):
    return Decimal(str(value))


@pytest.fixture
def pending(client, seller_headers):
    response = client.post(f"{API}/pending", headers=seller_headers)
    assert response.status_code == 200
    return response.json()["sale"]


def add(client, headers, sale_id, product_id, quantity):
    return client.post(
        f"{API}/{sale_id}/items",
        json={"product_id": product_id, "quantity": quantity},
        headers=headers
    )


def test_requires_authentication(client, db):
    assert client.post(f"{API}/pending").status_code in (401, 403)


def test_rejects_invalid_token(client, db):
    response = client.post(f"{API}/pending", headers={"Authorization": "Bearer basura"})
    assert response.status_code == 401


def test_pending_sale_is_reused(client, seller_headers, pending):
    again = client.post(f"{API}/pending", json={"payment_method": "PIX"}, headers=seller_headers)
    assert again.json()["sale"]["id"] == pending["id"]
    assert pending["status"] == "PENDING"
    assert pending["payment_method"] == "CASH"


def test_full_sale_flow(client, seller_headers, pending, make_product):
    product = make_product(price="5.00", stock=10)
    sale_id = pending["id"]

    body = add(client, seller_headers, sale_id, product.id, 3).json()
    assert money(body["sale"]["total_amount"]) == Decimal("15.00")

    body = add(client, seller_headers, sale_id, product.id, 4).json()
    assert len(body["sale"]["items"]) == 1
    assert body["sale"]["items"][0]["quantity"] == 7

    response = add(client, seller_headers, sale_id, product.id, 5)
    assert response.status_code == 400
    assert response.json()["error_code"] == "INSUFFICIENT_STOCK"
    assert response.json()["success"] is False

    response = client.put(f"{API}/{sale_id}/discount", json={"discount": "5.00"}, headers=seller_headers)
    assert money(response.json()["sale"]["total_amount"]) == Decimal("30.00")

    response = client.post(
        f"{API}/{sale_id}/finalize",
        json={"amount_tendered": "50.00", "payment_method": "CASH"},
        headers=seller_headers
    )
    assert response.status_code == 200
    sale = response.json()["sale"]
    assert sale["status"] == "FINALIZED"
    assert money(sale["change_due"]) == Decimal("20.00")

    product_response = client.get(f"/api/v1/products/{product.id}", headers=seller_headers)
    assert product_response.json()["product"]["current_stock"] == 3

    receipt = client.get(f"{API}/{sale_id}/receipt", headers=seller_headers).json()
    assert receipt["lines"][0]["description"] == f"{product.name} - 7x $ 5.00"
    assert money(receipt["discount"]) == Decimal("5.00")
    assert receipt["payment_method_label"] == "Efectivo"


def test_finalize_errors(client, seller_headers, pending, make_product):
    sale_id = pending["id"]

    response = client.post(f"{API}/{sale_id}/finalize", json={"amount_tendered": "10"}, headers=seller_headers)
    assert response.status_code == 400
    assert response.json()["error_code"] == "EMPTY_SALE"

    product = make_product(price="10.00", stock=5)
    add(client, seller_headers, sale_id, product.id, 3)

    response = client.post(f"{API}/{sale_id}/finalize", json={"amount_tendered": "20"}, headers=seller_headers)
    assert response.status_code == 400
    assert response.json()["error_code"] == "INSUFFICIENT_PAYMENT"

    sale = client.get(f"{API}/{sale_id}", headers=seller_headers).json()["sale"]
    assert sale["status"] == "PENDING"


def test_item_endpoints(client, seller_headers, pending, make_product):
    product = make_product(price="2.00", stock=5)
    sale_id = pending["id"]
    item_id = add(client, seller_headers, sale_id, product.id, 1).json()["sale"]["items"][0]["id"]

    response = client.post(f"{API}/{sale_id}/items/{item_id}/increment", headers=seller_headers)
    assert response.json()["sale"]["items"][0]["quantity"] == 2

    response = client.put(f"{API}/{sale_id}/items/{item_id}", json={"quantity": 4}, headers=seller_headers)
    assert money(response.json()["sale"]["total_amount"]) == Decimal("8.00")

    response = client.post(f"{API}/{sale_id}/items/{item_id}/decrement", headers=seller_headers)
    assert response.json()["sale"]["items"][0]["quantity"] == 3

    response = client.put(f"{API}/{sale_id}/items/{item_id}", json={"quantity": 0}, headers=seller_headers)
    assert response.json()["error_code"] == "INVALID_QUANTITY"

    response = client.delete(f"{API}/{sale_id}/items/{item_id}", headers=seller_headers)
    assert response.json()["sale"]["items"] == []

    response = client.delete(f"{API}/{sale_id}/items/{item_id}", headers=seller_headers)
    assert response.status_code == 404
    assert response.json()["error_code"] == "ITEM_NOT_FOUND"


def test_unknown_sale_and_product(client, seller_headers, pending):
    response = client.get(f"{API}/9999", headers=seller_headers)
    assert response.status_code == 404
    assert response.json()["error_code"] == "SALE_NOT_FOUND"

    response = add(client, seller_headers, pending["id"], 9999, 1)
    assert response.status_code == 404
    assert response.json()["error_code"] == "PRODUCT_NOT_FOUND"


def test_cancel_flow(client, seller_headers, pending, make_product):
    sale_id = pending["id"]

    response = client.post(f"{API}/{sale_id}/cancel", headers=seller_headers)
    assert response.json()["sale"]["status"] == "CANCELLED"

    response = client.post(f"{API}/{sale_id}/cancel", headers=seller_headers)
    assert response.status_code == 200

    response = client.put(f"{API}/{sale_id}/notes", json={"notes": "tarde"}, headers=seller_headers)
    assert response.status_code == 409
    assert response.json()["error_code"] == "INVALID_STATE"

    response = client.get(f"{API}/{sale_id}/receipt", headers=seller_headers)
    assert response.status_code == 409


def test_new_sale_discards_pending(client, seller_headers, pending):
    response = client.post(f"{API}/new", json={"payment_method": "PIX"}, headers=seller_headers)
    sale = response.json()["sale"]
    assert sale["id"] != pending["id"]
    assert sale["payment_method"] == "PIX"

    response = client.get(f"{API}/{pending['id']}", headers=seller_headers)
    assert response.status_code == 404


def test_cancel_pending(client, seller_headers, pending):
    response = client.post(f"{API}/cancel-pending", headers=seller_headers)
    assert response.json()["cancelled_count"] == 1


def test_history_and_stats(client, seller_headers, pending, make_product):
    product = make_product(code="TOP", price="4.00", stock=20)
    sale_id = pending["id"]
    add(client, seller_headers, sale_id, product.id, 5)
    client.post(f"{API}/{sale_id}/finalize", json={"amount_tendered": "20"}, headers=seller_headers)
    client.post(f"{API}/pending", headers=seller_headers)

    body = client.get(API, params={"status": "FINALIZED"}, headers=seller_headers).json()
    assert [s["id"] for s in body["sales"]] == [sale_id]
    assert body["has_next"] is False

    body = client.get(API, params={"size": 1}, headers=seller_headers).json()
    assert len(body["sales"]) == 1
    assert body["has_next"] is True

    today = date.today().isoformat()
    stats = client.get(f"{API}/stats", params={"start_date": today, "end_date": today}, headers=seller_headers).json()
    assert stats["by_payment_method"][0]["payment_method"] == "CASH"
    assert stats["by_payment_method"][0]["sales_count"] == 1
    assert money(stats["by_day"][0]["total_amount"]) == Decimal("20.00")

    top = client.get(f"{API}/top-products", headers=seller_headers).json()
    assert top["products"][0]["product_code"] == "TOP"
    assert top["products"][0]["units_sold"] == 5

    summary = client.get(f"{API}/dashboard", headers=seller_headers).json()["summary"]
    assert money(summary["total_today"]) == Decimal("20.00")
    assert summary["sales_today"] == 2
    assert summary["by_status"]["PENDING"] == 1
