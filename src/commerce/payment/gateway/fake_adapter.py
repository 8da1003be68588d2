"""Configurable fake payment gateway for development and testing.

Simulates a card gateway without external calls. Intents succeed or fail as
configured, every call is recorded in ``calls``, and webhook payloads are
signed with HMAC-SHA256 in the same ``t=<timestamp>,v1=<hex>`` header layout
Stripe uses, so the webhook route runs the same code path in tests as in
production.
"""

import hashlib
import hmac
import json
import time
from uuid import uuid4

from commerce.errors import GatewayError, SignatureVerificationError
from commerce.payment.gateway.port import GatewayEvent, PaymentGateway, PaymentIntent


def _event_from_payload(data: dict) -> GatewayEvent:
    obj = data.get("data", {}).get("object", {}) or {}
    error = obj.get("last_payment_error") or {}
    return GatewayEvent(
        event_id=data.get("id") or f"evt_{uuid4().hex[:12]}",
        event_type=data.get("type", ""),
        transaction_id=obj.get("id"),
        failure_reason=error.get("message"),
        payload=data,
    )


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    def __init__(self, webhook_secret: str = "whsec_test_commerce") -> None:
        self.webhook_secret = webhook_secret
        self.should_succeed: bool = True
        self.failure_reason: str = "Card declined"
        self.calls: list[dict] = []
        self.intents: dict[str, PaymentIntent] = {}

    def configure(self, should_succeed: bool, failure_reason: str = "Card declined") -> None:
        """Configure gateway behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def create_payment_intent(
        self, amount: int, currency: str, metadata: dict, idempotency_key: str | None = None
    ) -> PaymentIntent:
        self.calls.append(
            {
                "method": "create_payment_intent",
                "amount": amount,
                "currency": currency,
                "metadata": dict(metadata),
                "idempotency_key": idempotency_key,
            }
        )

        if idempotency_key in self.intents:
            return self.intents[idempotency_key]
        if not self.should_succeed:
            raise GatewayError(self.failure_reason)

        intent_id = f"pi_fake_{uuid4().hex[:16]}"
        intent = PaymentIntent(
            intent_id=intent_id,
            client_secret=f"{intent_id}_secret_{uuid4().hex[:8]}",
            amount=amount,
            currency=currency,
        )
        if idempotency_key:
            self.intents[idempotency_key] = intent
        return intent

    # -------------------------------------------------------------------
    # Webhooks
    # -------------------------------------------------------------------
    def sign(self, payload: bytes, timestamp: int | None = None) -> str:
        """Signature header for ``payload``, as the gateway would send it."""
        timestamp = timestamp or int(time.time())
        signed = f"{timestamp}.".encode() + payload
        digest = hmac.new(self.webhook_secret.encode(), signed, hashlib.sha256).hexdigest()
        return f"t={timestamp},v1={digest}"

    def construct_event(self, payload: bytes, signature: str | None) -> GatewayEvent:
        self.calls.append({"method": "construct_event", "signature": signature})

        if not signature:
            raise SignatureVerificationError("Missing webhook signature")

        parts = dict(part.split("=", 1) for part in signature.split(",") if "=" in part)
        timestamp, received = parts.get("t"), parts.get("v1")
        if not timestamp or not received:
            raise SignatureVerificationError("Malformed webhook signature")

        if not timestamp.isdigit():
            raise SignatureVerificationError("Malformed webhook timestamp")

        expected = self.sign(payload, int(timestamp)).split("v1=", 1)[1]
        if not hmac.compare_digest(expected, received):
            raise SignatureVerificationError("Webhook signature does not match payload")

        try:
            data = json.loads(payload)
        except ValueError as exc:
            raise SignatureVerificationError(f"Invalid webhook payload: {exc}") from exc
        return _event_from_payload(data)
