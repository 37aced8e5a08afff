from unittest.mock import patch

import pytest
from resend.exceptions import ResendError

from services.exceptions import ReceiptDeliveryError
from services.receipt_service import RECEIPT_SUBJECT, ReceiptService, render_receipt_html

PURCHASE = {
    "metricTons": 3.556,
    "totalCost": 120,
    "paymentType": "subscription",
    "email": "driver@example.com",
}


def test_one_time_receipt_body():
    html = render_receipt_html("driver@example.com", 3.556, 97.79, "one-time")

    assert "3.56 metric tons" in html
    assert "One-Time Payment" in html
    assert "$97.79" in html
    assert "Monthly Amount" not in html


def test_subscription_receipt_shows_monthly_amount():
    html = render_receipt_html("driver@example.com", 3.556, 120, "subscription")

    assert "Monthly Subscription" in html
    assert "Monthly Amount" in html
    assert "$10.00" in html
    assert "$120.00" in html


def test_email_address_is_escaped():
    html = render_receipt_html("<script>@example.com", 1, 10, "one-time")
    assert "<script>" not in html


def test_send_receipt_email():
    service = ReceiptService(api_key="re_test", from_address="Offsets <hello@example.com>")

    with patch("resend.Emails.send", return_value={"id": "email_1"}) as send:
        result = service.send_receipt_email("driver@example.com", 3.556, 97.79, "one-time")

    assert result == {"success": True}
    params = send.call_args.args[0]
    assert params["from"] == "Offsets <hello@example.com>"
    assert params["to"] == ["driver@example.com"]
    assert params["subject"] == RECEIPT_SUBJECT
    assert "3.56 metric tons" in params["html"]


def test_provider_failure_raises_delivery_error():
    service = ReceiptService(api_key="re_test")
    error = ResendError(500, "application_error", "mail provider down", "Try again later")

    with patch("resend.Emails.send", side_effect=error):
        with pytest.raises(ReceiptDeliveryError):
            service.send_receipt_email("driver@example.com", 3.556, 97.79, "one-time")


async def test_receipt_route(async_client):
    with patch("resend.Emails.send", return_value={"id": "email_1"}):
        resp = await async_client.post("/api/payment/receipt", json=PURCHASE)

    assert resp.status_code == 200
    assert resp.json() == {"success": True}


async def test_receipt_route_maps_delivery_error(async_client):
    error = ResendError(500, "application_error", "mail provider down", "Try again later")

    with patch("resend.Emails.send", side_effect=error):
        resp = await async_client.post("/api/payment/receipt", json=PURCHASE)

    assert resp.status_code == 502
