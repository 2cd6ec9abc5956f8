from datetime import datetime, timedelta, timezone

from fastapi.testclient import TestClient

SHIRT = {"product_id": 1, "product_name": "Shirt", "price": 25.00, "quantity": 2}


def current_user_id(services) -> int:
    return services.auth.users.find_by_email("jane@example.com").user_id


def test_checkout_requires_login(client: TestClient):
    res = client.post("/api/payments/create-checkout-session", json={"products": [SHIRT]})
    assert res.status_code == 401


def test_checkout_round_trip(logged_in_client: TestClient, gateway, services):
    res = logged_in_client.post("/api/payments/create-checkout-session", json={"products": [SHIRT]})
    assert res.status_code == 200, res.text
    body = res.json()
    assert body["totalAmount"] == 50.0
    assert body["url"].endswith(body["id"])

    not_paid = logged_in_client.post("/api/payments/checkout-success", json={"sessionId": body["id"]})
    assert not_paid.status_code == 400
    assert not_paid.json() == {"message": "Payment not successful"}

    gateway.complete_session(body["id"])
    done = logged_in_client.post("/api/payments/checkout-success", json={"sessionId": body["id"]})
    assert done.status_code == 200, done.text
    assert done.json()["success"] is True
    order_id = done.json()["orderId"]

    profile = logged_in_client.get("/api/auth/user-profile").json()
    assert [o["orderId"] for o in profile["orders"]] == [order_id]
    assert profile["orders"][0]["items"][0]["productId"] == "1"


def test_checkout_success_right_after_payment(logged_in_client: TestClient, gateway, services):
    gateway.configure(auto_complete=True)
    res = logged_in_client.post("/api/payments/create-checkout-session", json={"products": [SHIRT]})
    session_id = res.json()["id"]
    assert gateway.sessions[session_id].status == "complete"

    done = logged_in_client.post("/api/payments/checkout-success", json={"sessionId": session_id})
    assert done.status_code == 200, done.text
    assert services.checkout.orders.count_orders() == 1


def test_invalid_products(logged_in_client: TestClient):
    res = logged_in_client.post("/api/payments/create-checkout-session", json={"products": []})
    assert res.status_code == 400
    assert res.json() == {"message": "Invalid or empty products array"}


def test_unknown_session_is_server_error(logged_in_client: TestClient):
    res = logged_in_client.post("/api/payments/checkout-success", json={"sessionId": "cs_test_missing"})
    assert res.status_code == 500


def test_coupon_routes(logged_in_client: TestClient, services):
    assert logged_in_client.get("/api/coupon").json() is None

    user_id = current_user_id(services)
    services.checkout.coupon_store.create("SAVE20", 20, datetime.now(timezone.utc) + timedelta(days=1), user_id)

    coupon = logged_in_client.get("/api/coupon").json()
    assert coupon["code"] == "SAVE20"
    assert coupon["discountPercentage"] == 20

    ok = logged_in_client.post("/api/coupon/validate", json={"code": "SAVE20"})
    assert ok.status_code == 200
    assert ok.json()["discountPercentage"] == 20

    missing = logged_in_client.post("/api/coupon/validate", json={"code": "NOPE"})
    assert missing.status_code == 404

    res = logged_in_client.post(
        "/api/payments/create-checkout-session",
        json={"products": [SHIRT], "couponCode": "SAVE20"},
    )
    assert res.json()["totalAmount"] == 40.0
