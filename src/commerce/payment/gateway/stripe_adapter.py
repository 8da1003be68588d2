"""Stripe payment gateway adapter.

Uses the stripe-python SDK to create PaymentIntents and to verify webhook
signatures with the endpoint's signing secret.
"""

import json

import stripe
import structlog

from commerce.errors import GatewayError, SignatureVerificationError
from commerce.payment.gateway.port import GatewayEvent, PaymentGateway, PaymentIntent

logger = structlog.get_logger(__name__)


class StripeGateway(PaymentGateway):
    """Production Stripe gateway adapter."""

    def __init__(self, api_key: str, webhook_secret: str) -> None:
        self.api_key = api_key
        self.webhook_secret = webhook_secret

    def create_payment_intent(
        self, amount: int, currency: str, metadata: dict, idempotency_key: str | None = None
    ) -> PaymentIntent:
        options = {"api_key": self.api_key}
        if idempotency_key:
            options["idempotency_key"] = idempotency_key
        try:
            intent = stripe.PaymentIntent.create(amount=amount, currency=currency, metadata=metadata, **options)
        except stripe.StripeError as exc:
            logger.error("Stripe payment intent failed", error=str(exc), error_type=type(exc).__name__)
            raise GatewayError(exc.user_message or str(exc)) from exc

        return PaymentIntent(
            intent_id=intent["id"],
            client_secret=intent["client_secret"],
            amount=intent["amount"],
            currency=intent["currency"],
            status=intent["status"],
        )

    def construct_event(self, payload: bytes, signature: str | None) -> GatewayEvent:
        try:
            event = stripe.Webhook.construct_event(payload, signature or "", self.webhook_secret)
        except stripe.SignatureVerificationError as exc:
            logger.warning("Stripe webhook signature invalid", error=str(exc))
            raise SignatureVerificationError(f"Webhook Error: {exc}") from exc
        except ValueError as exc:
            raise SignatureVerificationError(f"Webhook Error: {exc}") from exc

        obj = event["data"]["object"]
        error = obj.get("last_payment_error") or {}
        return GatewayEvent(
            event_id=event["id"],
            event_type=event["type"],
            transaction_id=obj.get("id"),
            failure_reason=error.get("message"),
            payload=json.loads(payload),
        )
