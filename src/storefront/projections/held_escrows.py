"""Held escrows — funds currently waiting for delivery confirmation or the hold deadline.

A record exists from payment until the escrow leaves the holding state
(released, refunded or frozen by a dispute). ``release_expired_escrows`` scans
this view for deadlines that have passed.
"""

from protean.core.projector import on
from protean.exceptions import ObjectNotFoundError
from protean.fields import DateTime, Identifier, Integer
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.order.events import (
    DeliveryConfirmed,
    EscrowReleased,
    OrderCancelled,
    OrderDisputed,
    OrderPaid,
    RefundApproved,
)
from storefront.order.order import Order


@storefront.projection
class HeldEscrow:
    order_id = Identifier(identifier=True, required=True)
    store_id = Identifier(required=True)
    amount = Integer(required=True)
    seller_amount = Integer(required=True)
    hold_until = DateTime(required=True)
    held_since = DateTime()


@storefront.projector(projector_for=HeldEscrow, aggregates=[Order])
class HeldEscrowProjector:
    @on(OrderPaid)
    def on_order_paid(self, event):
        current_domain.repository_for(HeldEscrow).add(
            HeldEscrow(
                order_id=event.order_id,
                store_id=event.store_id,
                amount=event.amount,
                seller_amount=event.seller_amount,
                hold_until=event.hold_until,
                held_since=event.paid_at,
            )
        )

    def _drop(self, order_id):
        repo = current_domain.repository_for(HeldEscrow)
        try:
            record = repo.get(str(order_id))
            repo._dao.delete(record)
        except ObjectNotFoundError:
            pass

    @on(DeliveryConfirmed)
    def on_delivery_confirmed(self, event):
        self._drop(event.order_id)

    @on(EscrowReleased)
    def on_escrow_released(self, event):
        self._drop(event.order_id)

    @on(OrderCancelled)
    def on_order_cancelled(self, event):
        """Unpaid orders never had a hold; nothing to drop."""
        self._drop(event.order_id)

    @on(RefundApproved)
    def on_refund_approved(self, event):
        self._drop(event.order_id)

    @on(OrderDisputed)
    def on_order_disputed(self, event):
        self._drop(event.order_id)
