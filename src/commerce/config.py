"""Runtime settings for the Commerce domain.

Values come from the environment (``COMMERCE_`` prefix) or a local ``.env``
file. Protean's own infrastructure config is selected separately through
``PROTEAN_ENV``.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class CommerceSettings(BaseSettings):
    """Order pricing policy, gateway selection and payment housekeeping."""

    model_config = SettingsConfigDict(env_prefix="COMMERCE_", env_file=".env", extra="ignore")

    tax_rate: float = Field(0.15, ge=0)
    free_shipping_threshold: float = Field(100.0, ge=0)
    flat_shipping_fee: float = Field(10.0, ge=0)
    currency: str = "usd"

    gateway: str = "fake"  # fake | stripe
    stripe_api_key: str = ""
    stripe_webhook_secret: str = ""
    fake_webhook_secret: str = "whsec_test_commerce"

    # Card intents still pending after this many minutes are failed by ExpireStalePayments
    pending_payment_expiry_minutes: int = Field(24 * 60, ge=1)

    allowed_origins: str = "*"


@lru_cache
def get_settings() -> CommerceSettings:
    return CommerceSettings()
