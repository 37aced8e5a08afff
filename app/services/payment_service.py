import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

import stripe

from core.environment import get_client_url, get_stripe_secret_key
from core.prometheus_metrics import checkout_sessions_total
from services.exceptions import PaymentProviderError

logger = logging.getLogger(__name__)

SUBSCRIPTION = "subscription"
ONE_TIME = "one-time"


def to_cents(amount: float) -> int:
    return int((Decimal(str(amount)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def checkout_amount_cents(total_cost: float, payment_type: str) -> int:
    """Subscriptions are billed monthly at a twelfth of the annual total."""
    if payment_type == SUBSCRIPTION:
        return to_cents(total_cost / 12)
    return to_cents(total_cost)


class PaymentService:
    """Creates Stripe Checkout sessions for offset purchases."""

    def __init__(self, api_key: Optional[str] = None, client_url: Optional[str] = None):
        self.api_key = api_key if api_key is not None else get_stripe_secret_key()
        self.client_url = client_url or get_client_url()

    def _find_customer_id(self, email: str) -> Optional[str]:
        customers = stripe.Customer.list(email=email, limit=1, api_key=self.api_key)
        if customers.data:
            return customers.data[0].id
        return None

    def build_session_params(
        self,
        email: str,
        metric_tons: float,
        total_cost: float,
        payment_type: str,
        customer_id: Optional[str] = None,
    ) -> dict:
        is_subscription = payment_type == SUBSCRIPTION

        price_data = {
            "currency": "usd",
            "product_data": {
                "name": "Monthly Carbon Offset Subscription" if is_subscription else "Annual Carbon Offset Credits",
                "description": (
                    f"Monthly subscription to offset {metric_tons:.2f} metric tons of CO₂ annually"
                    if is_subscription
                    else f"One-time payment to offset {metric_tons:.2f} metric tons of CO₂ emissions"
                ),
            },
            "unit_amount": checkout_amount_cents(total_cost, payment_type),
        }
        if is_subscription:
            price_data["recurring"] = {"interval": "month"}

        params = {
            "line_items": [{"price_data": price_data, "quantity": 1}],
            "mode": "subscription" if is_subscription else "payment",
            "success_url": f"{self.client_url}/?payment=success",
            "cancel_url": f"{self.client_url}/?payment=cancelled",
        }
        if customer_id:
            params["customer"] = customer_id
        else:
            params["customer_email"] = email
        return params

    def create_payment_session(
        self,
        email: str,
        metric_tons: float,
        total_cost: float,
        payment_type: str,
    ) -> dict:
        try:
            customer_id = self._find_customer_id(email)
            params = self.build_session_params(email, metric_tons, total_cost, payment_type, customer_id)
            session = stripe.checkout.Session.create(api_key=self.api_key, **params)
        except stripe.StripeError as e:
            checkout_sessions_total.labels(payment_type=payment_type, status="error").inc()
            logger.error(f"Stripe checkout session failed: {e}")
            raise PaymentProviderError(str(e)) from e

        checkout_sessions_total.labels(payment_type=payment_type, status="created").inc()
        logger.info(f"Created {payment_type} checkout session {session.id}")
        return {"url": session.url}
