"""Domain events for the Order aggregate.

All events are versioned, immutable facts representing state changes.
Events are persisted to the event store and used for:
- Rebuilding aggregate state via @apply (event sourcing)
- Updating projections via projectors

Money fields are integer minor units.
"""

from protean.fields import Boolean, DateTime, Identifier, Integer, String, Text

from storefront.domain import storefront


@storefront.event(part_of="Order")
class OrderCreated:
    """A buyer placed an order from a checkout draft."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    user_id = Identifier(required=True)
    store_id = Identifier(required=True)
    items = Text(required=True)  # JSON: list of item snapshot dicts
    delivery_method = String(required=True)
    delivery_address = String()
    delivery_notes = Text()
    buyer_note = Text()
    institution_id = Identifier()
    hall_id = Identifier()
    subtotal = Integer(required=True)
    delivery_fee = Integer(required=True)
    service_fee = Integer(required=True)
    discount = Integer(default=0)
    total_amount = Integer(required=True)
    currency = String(default="GHS")
    created_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderPaid:
    """Payment was captured and the funds are now held in escrow."""

    __version__ = 1

    order_id = Identifier(required=True)
    store_id = Identifier(required=True)
    payment_reference = String(required=True)
    payment_method = String(required=True)
    amount = Integer(required=True)
    buyer_fee = Integer(required=True)
    platform_fee = Integer(required=True)
    seller_commission = Integer(required=True)
    seller_amount = Integer(required=True)
    hold_until = DateTime(required=True)
    paid_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderProcessing:
    """The seller started preparing the order."""

    __version__ = 1

    order_id = Identifier(required=True)
    started_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderShipped:
    """The seller handed the order over for delivery or pickup."""

    __version__ = 1

    order_id = Identifier(required=True)
    seller_note = Text()
    shipped_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderDelivered:
    """The order reached the buyer; awaiting the buyer's confirmation."""

    __version__ = 1

    order_id = Identifier(required=True)
    delivered_at = DateTime(required=True)


@storefront.event(part_of="Order")
class DeliveryConfirmed:
    """The buyer confirmed delivery: the order is completed and escrow released together."""

    __version__ = 1

    order_id = Identifier(required=True)
    store_id = Identifier(required=True)
    seller_amount = Integer(required=True)
    escrow_released = Boolean(required=True)  # False if the hold had already expired
    released_at = DateTime()
    completed_at = DateTime(required=True)


@storefront.event(part_of="Order")
class EscrowReleased:
    """The escrow hold deadline passed and the seller's amount became payable."""

    __version__ = 1

    order_id = Identifier(required=True)
    store_id = Identifier(required=True)
    seller_amount = Integer(required=True)
    order_completed = Boolean(required=True)
    released_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderCancelled:
    """The order was cancelled before shipment."""

    __version__ = 1

    order_id = Identifier(required=True)
    reason = String(required=True)
    cancelled_by = String(required=True)
    escrow_refunded = Boolean(default=False)
    cancelled_at = DateTime(required=True)


@storefront.event(part_of="Order")
class RefundRequested:
    """The buyer asked for a refund; the order status is unchanged until reviewed."""

    __version__ = 1

    order_id = Identifier(required=True)
    reason = String(required=True)
    requested_at = DateTime(required=True)


@storefront.event(part_of="Order")
class RefundApproved:
    """A refund request was approved and the order refunded."""

    __version__ = 1

    order_id = Identifier(required=True)
    refund_amount = Integer(required=True)
    escrow_refunded = Boolean(default=False)
    refunded_at = DateTime(required=True)


@storefront.event(part_of="Order")
class RefundRejected:
    """A refund request was turned down; the order keeps its status."""

    __version__ = 1

    order_id = Identifier(required=True)
    reason = String()
    rejected_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderDisputed:
    """The buyer opened a dispute; the order and any held escrow are frozen."""

    __version__ = 1

    order_id = Identifier(required=True)
    reason = String(required=True)
    description = Text()
    escrow_frozen = Boolean(default=False)
    disputed_at = DateTime(required=True)
