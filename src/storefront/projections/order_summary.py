"""Order summary — listing view for buyers and stores."""

import json

from protean.core.projector import on
from protean.fields import DateTime, Identifier, Integer, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.order.events import (
    DeliveryConfirmed,
    EscrowReleased,
    OrderCancelled,
    OrderCreated,
    OrderDelivered,
    OrderDisputed,
    OrderPaid,
    OrderProcessing,
    OrderShipped,
    RefundApproved,
    RefundRejected,
    RefundRequested,
)
from storefront.order.order import EscrowStatus, Order, OrderStatus, RefundStatus


@storefront.projection
class OrderSummary:
    order_id = Identifier(identifier=True, required=True)
    order_number = String()
    user_id = Identifier(required=True)
    store_id = Identifier(required=True)
    status = String(required=True)
    escrow_status = String()
    refund_status = String()
    delivery_method = String()
    item_count = Integer(default=0)
    subtotal = Integer(default=0)
    delivery_fee = Integer(default=0)
    service_fee = Integer(default=0)
    total_amount = Integer(default=0)
    currency = String(default="GHS")
    created_at = DateTime()
    updated_at = DateTime()


@storefront.projector(projector_for=OrderSummary, aggregates=[Order])
class OrderSummaryProjector:
    @on(OrderCreated)
    def on_order_created(self, event):
        items = json.loads(event.items) if isinstance(event.items, str) else []
        current_domain.repository_for(OrderSummary).add(
            OrderSummary(
                order_id=event.order_id,
                order_number=event.order_number,
                user_id=event.user_id,
                store_id=event.store_id,
                status=OrderStatus.PENDING.value,
                delivery_method=event.delivery_method,
                item_count=sum(item.get("quantity", 0) for item in items),
                subtotal=event.subtotal,
                delivery_fee=event.delivery_fee,
                service_fee=event.service_fee,
                total_amount=event.total_amount,
                currency=event.currency or "GHS",
                created_at=event.created_at,
                updated_at=event.created_at,
            )
        )

    def _update(self, order_id, updated_at=None, **changes):
        repo = current_domain.repository_for(OrderSummary)
        summary = repo.get(order_id)
        for field_name, value in changes.items():
            setattr(summary, field_name, value)
        if updated_at:
            summary.updated_at = updated_at
        repo.add(summary)

    @on(OrderPaid)
    def on_order_paid(self, event):
        self._update(
            event.order_id,
            event.paid_at,
            status=OrderStatus.PAID.value,
            escrow_status=EscrowStatus.HOLDING.value,
        )

    @on(OrderProcessing)
    def on_order_processing(self, event):
        self._update(event.order_id, event.started_at, status=OrderStatus.PROCESSING.value)

    @on(OrderShipped)
    def on_order_shipped(self, event):
        self._update(event.order_id, event.shipped_at, status=OrderStatus.SHIPPED.value)

    @on(OrderDelivered)
    def on_order_delivered(self, event):
        self._update(event.order_id, event.delivered_at, status=OrderStatus.DELIVERED.value)

    @on(DeliveryConfirmed)
    def on_delivery_confirmed(self, event):
        self._update(
            event.order_id,
            event.completed_at,
            status=OrderStatus.COMPLETED.value,
            escrow_status=EscrowStatus.RELEASED.value,
        )

    @on(EscrowReleased)
    def on_escrow_released(self, event):
        changes = {"escrow_status": EscrowStatus.RELEASED.value}
        if event.order_completed:
            changes["status"] = OrderStatus.COMPLETED.value
        self._update(event.order_id, event.released_at, **changes)

    @on(OrderCancelled)
    def on_order_cancelled(self, event):
        changes = {"status": OrderStatus.CANCELLED.value}
        if event.escrow_refunded:
            changes["escrow_status"] = EscrowStatus.REFUNDED.value
        self._update(event.order_id, event.cancelled_at, **changes)

    @on(RefundRequested)
    def on_refund_requested(self, event):
        self._update(event.order_id, event.requested_at, refund_status=RefundStatus.REQUESTED.value)

    @on(RefundApproved)
    def on_refund_approved(self, event):
        changes = {"status": OrderStatus.REFUNDED.value, "refund_status": RefundStatus.APPROVED.value}
        if event.escrow_refunded:
            changes["escrow_status"] = EscrowStatus.REFUNDED.value
        self._update(event.order_id, event.refunded_at, **changes)

    @on(RefundRejected)
    def on_refund_rejected(self, event):
        self._update(event.order_id, event.rejected_at, refund_status=RefundStatus.REJECTED.value)

    @on(OrderDisputed)
    def on_order_disputed(self, event):
        changes = {"status": OrderStatus.DISPUTED.value}
        if event.escrow_frozen:
            changes["escrow_status"] = EscrowStatus.DISPUTED.value
        self._update(event.order_id, event.disputed_at, **changes)
