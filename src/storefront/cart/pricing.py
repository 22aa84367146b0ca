"""Pricing calculator — derives fees and totals from cart lines.

Pure functions over integer minor units. The service fee is the platform's
percentage of the subtotal, rounded half up to the nearest minor unit; the
delivery fee is a flat amount that only applies to the delivery method.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

from storefront.config import get_settings


class DeliveryMethod(Enum):
    PICKUP = "pickup"
    DELIVERY = "delivery"


@dataclass(frozen=True)
class PriceBreakdown:
    """Totals for a set of lines under a chosen delivery method."""

    subtotal: int
    service_fee: int
    delivery_fee: int
    discount: int = 0

    def __post_init__(self):
        for name in ("subtotal", "service_fee", "delivery_fee", "discount"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} cannot be negative")

    @property
    def total(self) -> int:
        return self.subtotal + self.delivery_fee + self.service_fee - self.discount


@dataclass(frozen=True)
class EscrowSplit:
    """How a paid order's total is divided between platform and seller."""

    amount: int
    buyer_fee: int
    seller_commission: int
    platform_fee: int
    seller_amount: int


def _round_minor(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def calculate_subtotal(lines) -> int:
    """Sum of unit_price x quantity over (unit_price, quantity) pairs."""
    return sum(unit_price * quantity for unit_price, quantity in lines)


def calculate_service_fee(subtotal: int, rate: Decimal | None = None) -> int:
    rate = get_settings().service_fee_rate if rate is None else Decimal(rate)
    return _round_minor(Decimal(subtotal) * rate)


def delivery_fee_for(method, flat_fee: int | None = None) -> int:
    method = DeliveryMethod(method)
    if method == DeliveryMethod.PICKUP:
        return 0
    return get_settings().flat_delivery_fee if flat_fee is None else flat_fee


def price_lines(lines, delivery_method, discount: int = 0) -> PriceBreakdown:
    subtotal = calculate_subtotal(lines)
    return PriceBreakdown(
        subtotal=subtotal,
        service_fee=calculate_service_fee(subtotal),
        delivery_fee=delivery_fee_for(delivery_method),
        discount=discount,
    )


def price_cart(cart, delivery_method) -> PriceBreakdown:
    return price_lines(((item.unit_price, item.quantity) for item in cart.items), delivery_method)


def split_escrow(breakdown: PriceBreakdown, commission_rate: Decimal | None = None) -> EscrowSplit:
    """Split a paid total: the buyer's service fee and the seller's commission go to the platform."""
    rate = get_settings().seller_commission_rate if commission_rate is None else Decimal(commission_rate)
    seller_commission = _round_minor(Decimal(breakdown.subtotal) * rate)
    platform_fee = breakdown.service_fee + seller_commission
    return EscrowSplit(
        amount=breakdown.total,
        buyer_fee=breakdown.service_fee,
        seller_commission=seller_commission,
        platform_fee=platform_fee,
        seller_amount=breakdown.total - platform_fee,
    )


def format_amount(amount: int, currency: str | None = None) -> str:
    """Render minor units for display, e.g. ``format_amount(21000) == "GHS 210.00"``."""
    currency = currency or get_settings().currency
    value = (Decimal(amount) / 100).quantize(Decimal("0.01"))
    return f"{currency} {value:,.2f}"
