import sqlite3
from unittest.mock import patch

from fastapi.testclient import TestClient

from storefront.container import Services


def test_cart_requires_login(client: TestClient):
    assert client.get("/api/cart").status_code == 401


def test_add_update_remove(logged_in_client: TestClient):
    client = logged_in_client
    assert client.get("/api/cart").json() == []

    client.post("/api/cart", json={"productId": 7})
    res = client.post("/api/cart", json={"productId": 7})
    assert res.status_code == 200, res.text
    assert res.json() == [{"product_id": "7", "quantity": 2}]

    client.post("/api/cart", json={"productId": "abc"})
    res = client.put("/api/cart/7", json={"quantity": 5})
    assert res.status_code == 200, res.text
    assert {"product_id": "7", "quantity": 5} in res.json()

    res = client.request("DELETE", "/api/cart", json={"productId": "abc"})
    assert res.json() == [{"product_id": "7", "quantity": 5}]

    res = client.put("/api/cart/7", json={"quantity": 0})
    assert res.json() == []


def test_update_missing_product(logged_in_client: TestClient):
    res = logged_in_client.put("/api/cart/99", json={"quantity": 1})
    assert res.status_code == 404
    assert res.json()["message"] == "Product not found in cart"


def test_update_rejects_bad_quantity(logged_in_client: TestClient):
    logged_in_client.post("/api/cart", json={"productId": 1})
    res = logged_in_client.put("/api/cart/1", json={"quantity": -1})
    assert res.status_code == 400


def test_add_requires_product(logged_in_client: TestClient):
    assert logged_in_client.post("/api/cart", json={}).status_code == 400


def test_delete_without_product_empties_cart(logged_in_client: TestClient):
    logged_in_client.post("/api/cart", json={"productId": 1})
    logged_in_client.post("/api/cart", json={"productId": 2})
    res = logged_in_client.delete("/api/cart")
    assert res.status_code == 200
    assert res.json() == []


def test_database_error_body_hides_driver_message(logged_in_client: TestClient, services: Services):
    failure = sqlite3.OperationalError("no such table: cart_items")
    with patch.object(services.cart.cart, "list_lines", side_effect=failure):
        res = logged_in_client.get("/api/cart")
    assert res.status_code == 500
    assert res.json() == {"message": "Internal Server Error"}
    assert "cart_items" not in res.text
