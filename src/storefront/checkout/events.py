"""Domain events for the CheckoutSession aggregate."""

from protean.fields import DateTime, Identifier, String

from storefront.domain import storefront


@storefront.event(part_of="CheckoutSession")
class CheckoutStarted:
    """A signed-in buyer started checking out a cart."""

    __version__ = 1

    checkout_id = Identifier(required=True)
    user_id = Identifier(required=True)
    cart_id = Identifier(required=True)
    store_id = Identifier(required=True)
    started_at = DateTime(required=True)


@storefront.event(part_of="CheckoutSession")
class DeliveryChosen:
    """The buyer picked pickup or delivery (with an address)."""

    __version__ = 1

    checkout_id = Identifier(required=True)
    delivery_method = String(required=True)
    delivery_address = String()


@storefront.event(part_of="CheckoutSession")
class PaymentChosen:
    """The buyer picked a payment method."""

    __version__ = 1

    checkout_id = Identifier(required=True)
    payment_method = String(required=True)
    provider = String()


@storefront.event(part_of="CheckoutSession")
class CheckoutStepChanged:
    """The checkout moved forward or back by one step."""

    __version__ = 1

    checkout_id = Identifier(required=True)
    from_step = String(required=True)
    to_step = String(required=True)


@storefront.event(part_of="CheckoutSession")
class CheckoutSubmissionFailed:
    """Placing the order failed; the session stays at review for a retry."""

    __version__ = 1

    checkout_id = Identifier(required=True)
    reason = String(required=True)
    failed_at = DateTime(required=True)


@storefront.event(part_of="CheckoutSession")
class CheckoutSubmitted:
    """The order was placed and the checkout is finished."""

    __version__ = 1

    checkout_id = Identifier(required=True)
    order_id = Identifier(required=True)
    submitted_at = DateTime(required=True)
