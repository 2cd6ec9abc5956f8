from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest

from storefront.checkout.models import CheckoutLine, parse_lines, to_cents
from storefront.container import Services
from storefront.core.exceptions import ForbiddenError, GatewayError, ValidationError

SHIRT = {"product_id": 1, "product_name": "Shirt", "price": 25.00, "quantity": 2}


@pytest.fixture
def user_id(services: Services) -> int:
    return services.auth.signup("Jane", "jane@example.com", "5550100", "secret123").user.user_id


def record_counts(services: Services):
    orders = services.checkout.orders
    return orders.count_orders(), orders.count_payments(), orders.count_notifications()


def test_to_cents_rounds_half_up():
    assert to_cents(25) == 2500
    assert to_cents("19.99") == 1999
    assert to_cents(0.125) == 13
    with pytest.raises(ValidationError):
        to_cents("abc")


@pytest.mark.parametrize("products", [None, [], "shirt", {"product_id": 1}])
def test_empty_or_non_list_products(products):
    with pytest.raises(ValidationError, match="Invalid or empty products array"):
        parse_lines(products)


@pytest.mark.parametrize(
    "override",
    [
        {"product_id": None},
        {"product_name": ""},
        {"price": None},
        {"price": -5},
        {"quantity": 0},
        {"quantity": 1.5},
        {"quantity": True},
        {"price": "1e30"},
    ],
)
def test_malformed_line_rejected(override):
    with pytest.raises(ValidationError, match="Invalid product structure"):
        CheckoutLine.parse({**SHIRT, **override})


def test_create_session_without_coupon(services: Services, gateway, user_id: int):
    result = services.checkout.create_checkout_session(user_id, [SHIRT])
    assert result.total_amount_cents == 5000
    assert result.total_amount == 50.0
    assert result.coupon_applied is False
    assert result.loyalty_coupon_code is None

    session = gateway.sessions[result.session_id]
    assert session.amount_total == 5000
    assert session.metadata["userId"] == str(user_id)
    assert session.metadata["couponCode"] == ""
    call = gateway.calls[-1]
    assert call["success_url"] == "http://shop.test/purchase-success?session_id={CHECKOUT_SESSION_ID}"
    assert call["cancel_url"] == "http://shop.test/purchase-cancel"


def test_full_checkout_materializes_order(services: Services, gateway, mailer, user_id: int):
    result = services.checkout.create_checkout_session(user_id, [SHIRT])
    gateway.complete_session(result.session_id)

    confirmation = services.checkout.checkout_success(user_id, result.session_id)

    orders = services.checkout.orders
    assert orders.count_orders() == 1
    order = orders.list_orders(user_id)[0]
    assert order["order_id"] == confirmation.order_id
    assert order["total_amount"] == 50.0
    assert order["order_status"] == "delivered"

    items = orders.get_order_items(confirmation.order_id)
    assert [(i["product_id"], i["quantity"], i["price"]) for i in items] == [("1", 2, 25.0)]

    payments = orders.get_payments(confirmation.order_id)
    assert len(payments) == 1
    assert payments[0]["amount"] == 50.0
    assert payments[0]["payment_status"] == "completed"

    notifications = orders.get_notifications(confirmation.order_id)
    assert [n["email_status"] for n in notifications] == ["sent"]
    assert confirmation.email_status == "sent"
    assert mailer.sent[-1]["subject"] == "Your Order Confirmation"


def test_incomplete_session_creates_nothing(services: Services, user_id: int):
    result = services.checkout.create_checkout_session(user_id, [SHIRT])
    with pytest.raises(ValidationError, match="Payment not successful"):
        services.checkout.checkout_success(user_id, result.session_id)
    assert record_counts(services) == (0, 0, 0)


def test_expired_session_creates_nothing(services: Services, gateway, user_id: int):
    result = services.checkout.create_checkout_session(user_id, [SHIRT])
    gateway.expire_session(result.session_id)
    with pytest.raises(ValidationError):
        services.checkout.checkout_success(user_id, result.session_id)
    assert record_counts(services) == (0, 0, 0)


def test_unknown_session_is_gateway_error(services: Services, user_id: int):
    with pytest.raises(GatewayError):
        services.checkout.checkout_success(user_id, "cs_test_missing")


def test_missing_session_id(services: Services, user_id: int):
    with pytest.raises(ValidationError):
        services.checkout.checkout_success(user_id, None)


def test_email_failure_is_recorded_not_raised(services: Services, gateway, mailer, user_id: int):
    mailer.configure(should_succeed=False)
    result = services.checkout.create_checkout_session(user_id, [SHIRT])
    gateway.complete_session(result.session_id)

    confirmation = services.checkout.checkout_success(user_id, result.session_id)

    assert confirmation.email_status == "failed"
    assert record_counts(services) == (1, 1, 1)


def test_mailer_exception_is_recorded_as_failed(services: Services, gateway, user_id: int):
    result = services.checkout.create_checkout_session(user_id, [SHIRT])
    gateway.complete_session(result.session_id)

    with patch.object(services.checkout.mailer, "send", side_effect=RuntimeError("smtp down")):
        confirmation = services.checkout.checkout_success(user_id, result.session_id)

    assert confirmation.email_status == "failed"
    assert record_counts(services) == (1, 1, 1)


def test_checkout_success_is_idempotent(services: Services, gateway, user_id: int):
    result = services.checkout.create_checkout_session(user_id, [SHIRT])
    gateway.complete_session(result.session_id)

    first = services.checkout.checkout_success(user_id, result.session_id)
    second = services.checkout.checkout_success(user_id, result.session_id)

    assert second.order_id == first.order_id
    assert second.already_processed is True
    assert second.email_status == "sent"
    assert record_counts(services) == (1, 1, 1)


def test_session_of_another_user_is_forbidden(services: Services, gateway, user_id: int):
    other = services.auth.signup("John", "john@example.com", "5550101", "secret123").user.user_id
    result = services.checkout.create_checkout_session(user_id, [SHIRT])
    gateway.complete_session(result.session_id)

    with pytest.raises(ForbiddenError):
        services.checkout.checkout_success(other, result.session_id)
    assert record_counts(services) == (0, 0, 0)


def test_coupon_discount_and_loyalty_grant(services: Services, gateway, user_id: int):
    services.checkout.coupon_store.create(
        "SAVE10", 10, datetime.now(timezone.utc) + timedelta(days=1), user_id
    )
    cart = [{"product_id": "sku-1", "product_name": "Jacket", "price": 200.00, "quantity": 1}]

    result = services.checkout.create_checkout_session(user_id, cart, "SAVE10")

    assert result.coupon_applied is True
    assert result.total_amount_cents == 18000
    assert gateway.sessions[result.session_id].amount_total == 18000
    assert gateway.sessions[result.session_id].metadata["couponCode"] == "SAVE10"
    assert any(c["method"] == "create_coupon" and c["percent_off"] == 10 for c in gateway.calls)

    # loyalty coupon exists before any payment happens
    codes = [c["coupon_code"] for c in services.checkout.coupon_store.list_for_user(user_id)]
    assert result.loyalty_coupon_code in codes
    assert len(codes) == 2


def test_coupon_deactivated_on_success(services: Services, gateway, user_id: int):
    store = services.checkout.coupon_store
    store.create("SAVE10", 10, datetime.now(timezone.utc) + timedelta(days=1), user_id)
    result = services.checkout.create_checkout_session(user_id, [SHIRT], "SAVE10")
    assert result.total_amount_cents == 4500
    gateway.complete_session(result.session_id)

    services.checkout.checkout_success(user_id, result.session_id)

    assert store.find_active_by_code("SAVE10", user_id) is None
    assert services.checkout.orders.list_orders(user_id)[0]["total_amount"] == 45.0


def test_unknown_coupon_charges_full_price(services: Services, gateway, user_id: int):
    result = services.checkout.create_checkout_session(user_id, [SHIRT], "NOPE")
    assert result.coupon_applied is False
    assert result.total_amount_cents == 5000
    assert not any(c["method"] == "create_coupon" for c in gateway.calls)


def test_below_threshold_earns_no_loyalty_coupon(services: Services, user_id: int):
    cart = [{"product_id": 2, "product_name": "Hat", "price": "199.99", "quantity": 1}]
    result = services.checkout.create_checkout_session(user_id, cart)
    assert result.loyalty_coupon_code is None
    assert services.checkout.coupon_store.list_for_user(user_id) == []
