"""Order aggregate (Event Sourced) — a placed order and the escrow behind it.

All state changes are captured as domain events and the current state is
rebuilt by replaying them via @apply handlers. Escrow lives on the order so
that releasing funds and completing the order happen in the same event.

State Machine (9 states):
    PENDING → PAID → PROCESSING → SHIPPED → DELIVERED → COMPLETED
    PAID → SHIPPED (sellers may skip processing)
    CANCELLED (from PENDING, PAID)
    DELIVERED/COMPLETED → REFUNDED (after an approved refund request)
    DISPUTED (from PAID, PROCESSING, SHIPPED, DELIVERED)

Escrow:
    HOLDING (from payment) → RELEASED (buyer confirms delivery or hold deadline passes)
    HOLDING → REFUNDED (cancellation or approved refund) | DISPUTED (dispute opened)
"""

import json
from datetime import UTC, datetime, timedelta
from enum import Enum
from uuid import uuid4

from protean import apply
from protean.exceptions import ValidationError
from protean.fields import (
    DateTime,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
    ValueObject,
)

from storefront.cart.pricing import DeliveryMethod, PriceBreakdown, split_escrow
from storefront.config import get_settings
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
from storefront.utils.clock import as_naive_utc


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"
    DISPUTED = "disputed"


class EscrowStatus(Enum):
    HOLDING = "holding"
    RELEASED = "released"
    REFUNDED = "refunded"
    DISPUTED = "disputed"


class RefundStatus(Enum):
    REQUESTED = "requested"
    APPROVED = "approved"
    REJECTED = "rejected"


class CancellationActor(Enum):
    BUYER = "Buyer"
    SELLER = "Seller"
    SYSTEM = "System"


class DisputeReason(Enum):
    NOT_RECEIVED = "not_received"
    NOT_AS_DESCRIBED = "not_as_described"
    DAMAGED = "damaged"
    WRONG_ITEM = "wrong_item"
    QUALITY_ISSUE = "quality_issue"
    OTHER = "other"


# State machine transition map
_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.PAID, OrderStatus.CANCELLED},
    OrderStatus.PAID: {
        OrderStatus.PROCESSING,
        OrderStatus.SHIPPED,
        OrderStatus.CANCELLED,
        OrderStatus.DISPUTED,
    },
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.DISPUTED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED, OrderStatus.DISPUTED},
    OrderStatus.DELIVERED: {OrderStatus.COMPLETED, OrderStatus.REFUNDED, OrderStatus.DISPUTED},
    OrderStatus.COMPLETED: {OrderStatus.REFUNDED},  # Only via an approved refund request
    OrderStatus.CANCELLED: set(),  # Terminal
    OrderStatus.REFUNDED: set(),  # Terminal
    OrderStatus.DISPUTED: set(),  # Terminal here; resolution happens outside the storefront
}

# States from which the buyer may cancel (before shipment)
_CANCELLABLE_STATES = {OrderStatus.PENDING, OrderStatus.PAID}

# States from which the buyer may ask for a refund
_REFUNDABLE_STATES = {OrderStatus.DELIVERED, OrderStatus.COMPLETED}


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@storefront.value_object(part_of="Order")
class Escrow:
    """Funds held by the platform between payment and the seller's payout.

    ``amount`` equals the order total; ``platform_fee`` (buyer fee plus seller
    commission) stays with the platform and ``seller_amount`` is paid out on
    release.
    """

    amount = Integer(required=True, min_value=0)
    buyer_fee = Integer(default=0)
    platform_fee = Integer(default=0)
    seller_commission = Integer(default=0)
    seller_amount = Integer(required=True, min_value=0)
    status = String(choices=EscrowStatus, default=EscrowStatus.HOLDING.value)
    hold_until = DateTime(required=True)
    released_at = DateTime()


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@storefront.entity(part_of="Order")
class OrderItem:
    """A product snapshot taken when the order was placed.

    Name, image and unit price are copied from the catalog so later product
    edits never rewrite an order's history.
    """

    product_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    image = String(max_length=1000)
    unit_price = Integer(required=True, min_value=0)
    quantity = Integer(required=True, min_value=1)

    @property
    def line_total(self):
        return self.unit_price * self.quantity


# ---------------------------------------------------------------------------
# Aggregate Root (Event Sourced)
# ---------------------------------------------------------------------------
@storefront.aggregate(is_event_sourced=True)
class Order:
    order_number = String(max_length=20)
    user_id = Identifier(required=True)
    store_id = Identifier(required=True)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    items = HasMany(OrderItem)
    delivery_method = String(choices=DeliveryMethod, default=DeliveryMethod.PICKUP.value)
    delivery_address = String(max_length=500)
    delivery_notes = Text()
    buyer_note = Text()
    seller_note = Text()
    institution_id = Identifier()
    hall_id = Identifier()
    subtotal = Integer(default=0)
    delivery_fee = Integer(default=0)
    service_fee = Integer(default=0)
    discount = Integer(default=0)
    total_amount = Integer(default=0)
    currency = String(max_length=3, default="GHS")
    escrow = ValueObject(Escrow)
    payment_reference = String(max_length=255)
    payment_method = String(max_length=50)
    cancellation_reason = String(max_length=500)
    cancelled_by = String(max_length=50)
    refund_status = String(choices=RefundStatus)
    refund_reason = String(max_length=500)
    dispute_reason = String(choices=DisputeReason)
    dispute_description = Text()
    created_at = DateTime()
    paid_at = DateTime()
    shipped_at = DateTime()
    delivered_at = DateTime()
    completed_at = DateTime()
    cancelled_at = DateTime()
    refund_requested_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, user_id, store_id, items_data, delivery, pricing, buyer=None):
        """Create a new order from a checkout draft.

        Uses _create_new() to get a blank aggregate with auto-generated
        identity. All state is established by the OrderCreated event's
        @apply handler.

        Args:
            user_id: The buyer placing the order.
            store_id: The store fulfilling every item.
            items_data: List of dicts with product_id, name, image,
                        unit_price, quantity.
            delivery: Dict with method, address, notes.
            pricing: PriceBreakdown for the items and delivery method.
            buyer: Optional dict with buyer_note, institution_id, hall_id.
        """
        if not items_data:
            raise ValidationError({"items": ["An order needs at least one item"]})
        if DeliveryMethod(delivery["method"]) == DeliveryMethod.DELIVERY and not (delivery.get("address") or "").strip():
            raise ValidationError({"delivery_address": ["A delivery address is required for delivery orders"]})

        buyer = buyer or {}
        settings = get_settings()
        now = datetime.now(UTC)

        # Pre-generate item IDs for deterministic replay
        items_with_ids = [{**item, "id": str(uuid4())} for item in items_data]

        order = cls._create_new()
        order.raise_(
            OrderCreated(
                order_id=str(order.id),
                order_number=f"{settings.order_number_prefix}-{uuid4().hex[:6].upper()}",
                user_id=str(user_id),
                store_id=str(store_id),
                items=json.dumps(items_with_ids),
                delivery_method=DeliveryMethod(delivery["method"]).value,
                delivery_address=delivery.get("address"),
                delivery_notes=delivery.get("notes"),
                buyer_note=buyer.get("buyer_note"),
                institution_id=buyer.get("institution_id"),
                hall_id=buyer.get("hall_id"),
                subtotal=pricing.subtotal,
                delivery_fee=pricing.delivery_fee,
                service_fee=pricing.service_fee,
                discount=pricing.discount,
                total_amount=pricing.total,
                currency=settings.currency,
                created_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status):
        """Validate that the current state allows transition to target."""
        current = OrderStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target_status.value}"]})

    @property
    def pricing(self):
        return PriceBreakdown(
            subtotal=self.subtotal,
            service_fee=self.service_fee,
            delivery_fee=self.delivery_fee,
            discount=self.discount or 0,
        )

    @property
    def escrow_status(self):
        return EscrowStatus(self.escrow.status) if self.escrow else None

    def _escrow_with(self, status, released_at=None):
        return Escrow(
            amount=self.escrow.amount,
            buyer_fee=self.escrow.buyer_fee,
            platform_fee=self.escrow.platform_fee,
            seller_commission=self.escrow.seller_commission,
            seller_amount=self.escrow.seller_amount,
            status=status.value,
            hold_until=self.escrow.hold_until,
            released_at=released_at if released_at is not None else self.escrow.released_at,
        )

    # -------------------------------------------------------------------
    # Payment and fulfillment (payment provider / seller)
    # -------------------------------------------------------------------
    def record_payment(self, payment_reference, payment_method, paid_at=None):
        """Record a captured payment and put the total on hold in escrow."""
        self._assert_can_transition(OrderStatus.PAID)

        paid_at = paid_at or datetime.now(UTC)
        split = split_escrow(self.pricing)
        self.raise_(
            OrderPaid(
                order_id=str(self.id),
                store_id=str(self.store_id),
                payment_reference=payment_reference,
                payment_method=payment_method,
                amount=split.amount,
                buyer_fee=split.buyer_fee,
                platform_fee=split.platform_fee,
                seller_commission=split.seller_commission,
                seller_amount=split.seller_amount,
                hold_until=paid_at + timedelta(days=get_settings().escrow_hold_days),
                paid_at=paid_at,
            )
        )

    def mark_processing(self):
        """Mark order as being prepared by the seller."""
        self._assert_can_transition(OrderStatus.PROCESSING)
        self.raise_(
            OrderProcessing(
                order_id=str(self.id),
                started_at=datetime.now(UTC),
            )
        )

    def ship(self, seller_note=None):
        """Record that the seller has dispatched the order."""
        self._assert_can_transition(OrderStatus.SHIPPED)
        self.raise_(
            OrderShipped(
                order_id=str(self.id),
                seller_note=seller_note,
                shipped_at=datetime.now(UTC),
            )
        )

    def record_delivery(self):
        """Record that the order reached the buyer."""
        self._assert_can_transition(OrderStatus.DELIVERED)
        self.raise_(
            OrderDelivered(
                order_id=str(self.id),
                delivered_at=datetime.now(UTC),
            )
        )

    # -------------------------------------------------------------------
    # Buyer actions
    # -------------------------------------------------------------------
    def confirm_delivery(self):
        """Buyer confirms receipt: completes the order and releases escrow in one step."""
        if OrderStatus(self.status) != OrderStatus.DELIVERED:
            raise ValidationError({"status": ["Delivery can only be confirmed for delivered orders"]})
        if self.escrow is None:
            raise ValidationError({"escrow": ["Order has no escrow to release"]})

        now = datetime.now(UTC)
        releasing = self.escrow_status == EscrowStatus.HOLDING
        self.raise_(
            DeliveryConfirmed(
                order_id=str(self.id),
                store_id=str(self.store_id),
                seller_amount=self.escrow.seller_amount,
                escrow_released=releasing,
                released_at=now if releasing else self.escrow.released_at,
                completed_at=now,
            )
        )

    def cancel(self, reason, cancelled_by):
        """Cancel the order. Only possible before shipment."""
        current = OrderStatus(self.status)
        if current not in _CANCELLABLE_STATES:
            raise ValidationError(
                {
                    "status": [
                        f"Cannot cancel order in {current.value} state. "
                        f"Cancellation is only allowed from: "
                        f"{', '.join(sorted(s.value for s in _CANCELLABLE_STATES))}"
                    ]
                }
            )
        if self.escrow is not None and self.escrow_status != EscrowStatus.HOLDING:
            raise ValidationError({"escrow": ["Escrow has already been released to the seller"]})

        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                reason=reason,
                cancelled_by=cancelled_by,
                escrow_refunded=self.escrow_status == EscrowStatus.HOLDING,
                cancelled_at=datetime.now(UTC),
            )
        )

    def request_refund(self, reason):
        """Ask for a refund. The status only changes once the request is approved."""
        current = OrderStatus(self.status)
        if current not in _REFUNDABLE_STATES:
            raise ValidationError({"status": ["Refunds can only be requested for delivered or completed orders"]})
        if self.refund_status == RefundStatus.REQUESTED.value:
            raise ValidationError({"refund": ["A refund request is already pending review"]})

        self.raise_(
            RefundRequested(
                order_id=str(self.id),
                reason=reason,
                requested_at=datetime.now(UTC),
            )
        )

    def open_dispute(self, reason, description=None):
        """Open a dispute; any escrow still holding is frozen."""
        self._assert_can_transition(OrderStatus.DISPUTED)
        if reason not in {r.value for r in DisputeReason}:
            raise ValidationError({"reason": [f"Unknown dispute reason: {reason}"]})
        self.raise_(
            OrderDisputed(
                order_id=str(self.id),
                reason=reason,
                description=description,
                escrow_frozen=self.escrow_status == EscrowStatus.HOLDING,
                disputed_at=datetime.now(UTC),
            )
        )

    # -------------------------------------------------------------------
    # Refund review (external approval)
    # -------------------------------------------------------------------
    def approve_refund(self, refund_amount=None):
        if self.refund_status != RefundStatus.REQUESTED.value:
            raise ValidationError({"refund": ["There is no pending refund request"]})
        self._assert_can_transition(OrderStatus.REFUNDED)

        amount = refund_amount if refund_amount is not None else self.total_amount
        if amount < 0 or amount > self.total_amount:
            raise ValidationError({"refund_amount": ["Refund amount must be between 0 and the order total"]})

        self.raise_(
            RefundApproved(
                order_id=str(self.id),
                refund_amount=amount,
                escrow_refunded=self.escrow_status == EscrowStatus.HOLDING,
                refunded_at=datetime.now(UTC),
            )
        )

    def reject_refund(self, reason=None):
        if self.refund_status != RefundStatus.REQUESTED.value:
            raise ValidationError({"refund": ["There is no pending refund request"]})
        self.raise_(
            RefundRejected(
                order_id=str(self.id),
                reason=reason,
                rejected_at=datetime.now(UTC),
            )
        )

    # -------------------------------------------------------------------
    # Escrow expiry
    # -------------------------------------------------------------------
    def escrow_expired(self, as_of=None):
        if self.escrow_status != EscrowStatus.HOLDING:
            return False
        as_of = as_of or datetime.now(UTC)
        return as_naive_utc(as_of) >= as_naive_utc(self.escrow.hold_until)

    def release_escrow(self, as_of=None):
        """Release a holding escrow whose deadline has passed. Delivered orders complete with it."""
        if self.escrow_status != EscrowStatus.HOLDING:
            raise ValidationError({"escrow": ["Only held escrow can be released"]})
        as_of = as_of or datetime.now(UTC)
        if not self.escrow_expired(as_of):
            raise ValidationError({"escrow": ["Escrow hold period has not ended yet"]})

        self.raise_(
            EscrowReleased(
                order_id=str(self.id),
                store_id=str(self.store_id),
                seller_amount=self.escrow.seller_amount,
                order_completed=OrderStatus(self.status) == OrderStatus.DELIVERED,
                released_at=as_of,
            )
        )

    # -------------------------------------------------------------------
    # @apply methods: rebuild state during event replay
    # -------------------------------------------------------------------
    @apply
    def _on_order_created(self, event: OrderCreated):
        self.id = event.order_id
        self.order_number = event.order_number
        self.user_id = event.user_id
        self.store_id = event.store_id
        self.status = OrderStatus.PENDING.value
        self.delivery_method = event.delivery_method
        self.delivery_address = event.delivery_address
        self.delivery_notes = event.delivery_notes
        self.buyer_note = event.buyer_note
        self.institution_id = event.institution_id
        self.hall_id = event.hall_id
        self.subtotal = event.subtotal
        self.delivery_fee = event.delivery_fee
        self.service_fee = event.service_fee
        self.discount = event.discount or 0
        self.total_amount = event.total_amount
        self.currency = event.currency or "GHS"
        self.created_at = event.created_at
        self.updated_at = event.created_at

        # Reconstruct items from JSON (includes IDs for deterministic replay)
        items_data = json.loads(event.items) if isinstance(event.items, str) else []
        self.items = [OrderItem(**item_data) for item_data in items_data]

    @apply
    def _on_order_paid(self, event: OrderPaid):
        self.status = OrderStatus.PAID.value
        self.payment_reference = event.payment_reference
        self.payment_method = event.payment_method
        self.paid_at = event.paid_at
        self.updated_at = event.paid_at
        self.escrow = Escrow(
            amount=event.amount,
            buyer_fee=event.buyer_fee,
            platform_fee=event.platform_fee,
            seller_commission=event.seller_commission,
            seller_amount=event.seller_amount,
            status=EscrowStatus.HOLDING.value,
            hold_until=event.hold_until,
        )

    @apply
    def _on_order_processing(self, event: OrderProcessing):
        self.status = OrderStatus.PROCESSING.value
        self.updated_at = event.started_at

    @apply
    def _on_order_shipped(self, event: OrderShipped):
        self.status = OrderStatus.SHIPPED.value
        if event.seller_note:
            self.seller_note = event.seller_note
        self.shipped_at = event.shipped_at
        self.updated_at = event.shipped_at

    @apply
    def _on_order_delivered(self, event: OrderDelivered):
        self.status = OrderStatus.DELIVERED.value
        self.delivered_at = event.delivered_at
        self.updated_at = event.delivered_at

    @apply
    def _on_delivery_confirmed(self, event: DeliveryConfirmed):
        self.status = OrderStatus.COMPLETED.value
        self.completed_at = event.completed_at
        self.updated_at = event.completed_at
        if event.escrow_released:
            self.escrow = self._escrow_with(EscrowStatus.RELEASED, released_at=event.released_at)

    @apply
    def _on_escrow_released(self, event: EscrowReleased):
        self.escrow = self._escrow_with(EscrowStatus.RELEASED, released_at=event.released_at)
        if event.order_completed:
            self.status = OrderStatus.COMPLETED.value
            self.completed_at = event.released_at
        self.updated_at = event.released_at

    @apply
    def _on_order_cancelled(self, event: OrderCancelled):
        self.status = OrderStatus.CANCELLED.value
        self.cancellation_reason = event.reason
        self.cancelled_by = event.cancelled_by
        self.cancelled_at = event.cancelled_at
        self.updated_at = event.cancelled_at
        if event.escrow_refunded:
            self.escrow = self._escrow_with(EscrowStatus.REFUNDED)

    @apply
    def _on_refund_requested(self, event: RefundRequested):
        self.refund_status = RefundStatus.REQUESTED.value
        self.refund_reason = event.reason
        self.refund_requested_at = event.requested_at
        self.updated_at = event.requested_at

    @apply
    def _on_refund_approved(self, event: RefundApproved):
        self.status = OrderStatus.REFUNDED.value
        self.refund_status = RefundStatus.APPROVED.value
        self.updated_at = event.refunded_at
        if event.escrow_refunded:
            self.escrow = self._escrow_with(EscrowStatus.REFUNDED)

    @apply
    def _on_refund_rejected(self, event: RefundRejected):
        self.refund_status = RefundStatus.REJECTED.value
        self.updated_at = event.rejected_at

    @apply
    def _on_order_disputed(self, event: OrderDisputed):
        self.status = OrderStatus.DISPUTED.value
        self.dispute_reason = event.reason
        self.dispute_description = event.description
        self.updated_at = event.disputed_at
        if event.escrow_frozen:
            self.escrow = self._escrow_with(EscrowStatus.DISPUTED)
