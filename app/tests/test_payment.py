from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
import stripe

from services.exceptions import PaymentProviderError
from services.payment_service import PaymentService, checkout_amount_cents, to_cents

CLIENT_URL = "https://offsets.example"

PURCHASE = {
    "metricTons": 3.556,
    "baseCost": 88.9,
    "totalCost": 97.79,
    "paymentType": "one-time",
    "email": "driver@example.com",
}


def _session():
    return SimpleNamespace(id="cs_test_123", url="https://checkout.stripe.com/c/pay/cs_test_123")


@pytest.fixture
def no_customers():
    with patch("stripe.Customer.list", return_value=SimpleNamespace(data=[])) as customers:
        yield customers


class TestAmounts:

    def test_one_time_charges_the_total(self):
        assert checkout_amount_cents(97.79, "one-time") == 9779

    def test_subscription_charges_a_twelfth(self):
        assert checkout_amount_cents(120, "subscription") == 1000

    def test_half_cents_round_up(self):
        assert to_cents(0.125) == 13
        assert to_cents(10.005) == 1001


class TestSessionParams:

    def test_one_time_payment(self):
        params = PaymentService(api_key="sk_test", client_url=CLIENT_URL).build_session_params(
            "driver@example.com", 3.556, 97.79, "one-time"
        )

        assert params["mode"] == "payment"
        assert params["customer_email"] == "driver@example.com"
        assert "customer" not in params
        assert params["success_url"] == f"{CLIENT_URL}/?payment=success"
        assert params["cancel_url"] == f"{CLIENT_URL}/?payment=cancelled"

        price = params["line_items"][0]["price_data"]
        assert price["currency"] == "usd"
        assert price["unit_amount"] == 9779
        assert "recurring" not in price
        assert price["product_data"]["name"] == "Annual Carbon Offset Credits"
        assert "3.56 metric tons" in price["product_data"]["description"]

    def test_subscription_reuses_customer(self):
        params = PaymentService(api_key="sk_test", client_url=CLIENT_URL).build_session_params(
            "driver@example.com", 3.556, 120, "subscription", customer_id="cus_42"
        )

        assert params["mode"] == "subscription"
        assert params["customer"] == "cus_42"
        assert "customer_email" not in params

        price = params["line_items"][0]["price_data"]
        assert price["unit_amount"] == 1000
        assert price["recurring"] == {"interval": "month"}
        assert price["product_data"]["name"] == "Monthly Carbon Offset Subscription"


def test_create_session_looks_up_customer(no_customers):
    no_customers.return_value = SimpleNamespace(data=[SimpleNamespace(id="cus_existing")])
    service = PaymentService(api_key="sk_test", client_url=CLIENT_URL)

    with patch("stripe.checkout.Session.create", return_value=_session()) as create:
        result = service.create_payment_session("driver@example.com", 3.556, 97.79, "one-time")

    assert result == {"url": "https://checkout.stripe.com/c/pay/cs_test_123"}
    no_customers.assert_called_once_with(email="driver@example.com", limit=1, api_key="sk_test")
    kwargs = create.call_args.kwargs
    assert kwargs["api_key"] == "sk_test"
    assert kwargs["customer"] == "cus_existing"


def test_stripe_failure_raises_provider_error(no_customers):
    service = PaymentService(api_key="sk_test", client_url=CLIENT_URL)

    with patch("stripe.checkout.Session.create", side_effect=stripe.StripeError("card network down")):
        with pytest.raises(PaymentProviderError) as exc_info:
            service.create_payment_session("driver@example.com", 3.556, 97.79, "one-time")

    assert "card network down" in str(exc_info.value)


async def test_create_session_route(async_client, no_customers):
    with patch("stripe.checkout.Session.create", return_value=_session()) as create:
        resp = await async_client.post("/api/payment/create-session", json=PURCHASE)

    assert resp.status_code == 200
    assert resp.json() == {"url": "https://checkout.stripe.com/c/pay/cs_test_123"}
    assert create.call_args.kwargs["success_url"].endswith("/?payment=success")


async def test_create_session_route_maps_provider_error(async_client, no_customers):
    with patch("stripe.checkout.Session.create", side_effect=stripe.StripeError("invalid key")):
        resp = await async_client.post("/api/payment/create-session", json=PURCHASE)

    assert resp.status_code == 502
    assert "invalid key" in resp.json()["error"]


@pytest.mark.parametrize("change", [
    {"paymentType": "weekly"},
    {"email": "not-an-email"},
    {"totalCost": 0},
])
async def test_create_session_route_validates_body(async_client, change):
    resp = await async_client.post("/api/payment/create-session", json={**PURCHASE, **change})
    assert resp.status_code == 422


async def test_payment_routes_are_rate_limited(async_client, no_customers):
    with patch("stripe.checkout.Session.create", return_value=_session()):
        statuses = [
            (await async_client.post("/api/payment/create-session", json=PURCHASE)).status_code
            for _ in range(11)
        ]

    assert statuses[:10] == [200] * 10
    assert statuses[10] == 429
