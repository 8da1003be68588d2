"""Payment gateway factory.

Provides get_gateway() / set_gateway() to swap implementations:
- FakeGateway for development and testing
- StripeGateway for production (``COMMERCE_GATEWAY=stripe``)
"""

from commerce.config import get_settings
from commerce.payment.gateway.fake_adapter import FakeGateway
from commerce.payment.gateway.port import PaymentGateway
from commerce.payment.gateway.stripe_adapter import StripeGateway

_current_gateway: PaymentGateway | None = None


def _from_settings() -> PaymentGateway:
    settings = get_settings()
    if settings.gateway == "stripe":
        return StripeGateway(api_key=settings.stripe_api_key, webhook_secret=settings.stripe_webhook_secret)
    return FakeGateway(webhook_secret=settings.fake_webhook_secret)


def get_gateway() -> PaymentGateway:
    """Return the current payment gateway, built from settings on first use."""
    global _current_gateway
    if _current_gateway is None:
        _current_gateway = _from_settings()
    return _current_gateway


def set_gateway(gateway: PaymentGateway) -> None:
    """Override the active payment gateway (useful for tests)."""
    global _current_gateway
    _current_gateway = gateway


def reset_gateway() -> None:
    """Reset to the configured gateway."""
    global _current_gateway
    _current_gateway = None
