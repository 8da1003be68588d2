"""Payment gateway port (abstract interface).

Defines the contract card gateways must implement. This enables swapping
between FakeGateway (dev/test) and StripeGateway (production) without
changing any domain or application code.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass(frozen=True)
class PaymentIntent:
    """A gateway-side payment the client completes with ``client_secret``."""

    intent_id: str
    client_secret: str
    amount: int  # minor units
    currency: str
    status: str = "requires_payment_method"


@dataclass(frozen=True)
class GatewayEvent:
    """A verified webhook event."""

    event_id: str
    event_type: str
    transaction_id: str | None
    failure_reason: str | None = None
    payload: dict = field(default_factory=dict, compare=False)


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    @abstractmethod
    def create_payment_intent(
        self, amount: int, currency: str, metadata: dict, idempotency_key: str | None = None
    ) -> PaymentIntent:
        """Create a payment intent for ``amount`` minor units.

        A repeated ``idempotency_key`` returns the intent created the first
        time instead of a new one.

        Raises ``GatewayError`` when the provider refuses or cannot be reached.
        """
        ...

    @abstractmethod
    def construct_event(self, payload: bytes, signature: str | None) -> GatewayEvent:
        """Verify a webhook signature and parse the event.

        Raises ``SignatureVerificationError`` when the payload is not
        authentically from the gateway.
        """
        ...
