"""Business settings for the Storefront domain.

Protean infrastructure (databases, event store, broker) is configured in
``domain.toml``; the marketplace's commercial knobs live here and can be
overridden with ``STOREFRONT_*`` environment variables or a ``.env`` file.
All amounts are integer minor units (pesewas for GHS).
"""

from decimal import Decimal
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorefrontSettings(BaseSettings):
    currency: str = "GHS"

    # Flat fee charged when the buyer picks delivery instead of campus pickup
    flat_delivery_fee: int = Field(default=1500, ge=0)

    # Platform fee charged to the buyer, as a fraction of the subtotal
    service_fee_rate: Decimal = Field(default=Decimal("0.05"), ge=0, le=1)

    # Commission withheld from the seller's payout when escrow is released
    seller_commission_rate: Decimal = Field(default=Decimal("0"), ge=0, le=1)

    # Escrow is released automatically this many days after payment
    escrow_hold_days: int = Field(default=7, ge=0)

    order_number_prefix: str = "CPZ"

    model_config = SettingsConfigDict(
        env_prefix="STOREFRONT_",
        env_file=".env",
        extra="ignore",
    )


@lru_cache
def get_settings() -> StorefrontSettings:
    """Return the process-wide settings. Call ``get_settings.cache_clear()`` after changing the environment."""
    return StorefrontSettings()
