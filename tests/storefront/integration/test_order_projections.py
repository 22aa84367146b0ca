"""Integration tests for order projections — verify projectors update read models."""

import json
from datetime import UTC, datetime, timedelta

from protean import current_domain
from storefront.order.cancellation import CancelOrder
from storefront.order.confirmation import ConfirmDelivery
from storefront.order.creation import CreateOrder
from storefront.order.escrow_release import ReleaseEscrow
from storefront.order.fulfillment import RecordDelivery, ShipOrder
from storefront.order.payment import RecordPayment
from storefront.order.refunds import ApproveRefund, RequestRefund
from storefront.projections.held_escrows import HeldEscrow
from storefront.projections.order_summary import OrderSummary


def _create_order():
    return current_domain.process(
        CreateOrder(
            user_id="user-001",
            store_id="store-books",
            items=json.dumps(
                [
                    {"product_id": "prod-textbook", "quantity": 1},
                    {"product_id": "prod-notebook", "quantity": 4},
                ]
            ),
            delivery_method="delivery",
            delivery_fee=1500,
            delivery_address="Room 12",
        ),
        asynchronous=False,
    )


def _pay(order_id, paid_at=None):
    current_domain.process(
        RecordPayment(
            order_id=order_id,
            payment_reference="MOMO-001",
            payment_method="mobile_money",
            paid_at=paid_at,
        ),
        asynchronous=False,
    )


def _summary(order_id):
    return current_domain.repository_for(OrderSummary).get(order_id)


def _held(order_id):
    records = current_domain.repository_for(HeldEscrow)._dao.query.filter(order_id=order_id).all().items
    return records[0] if records else None


class TestOrderSummary:
    def test_created(self, catalog):
        order_id = _create_order()

        summary = _summary(order_id)
        assert summary.status == "pending"
        assert summary.item_count == 5
        assert summary.subtotal == 15000
        assert summary.service_fee == 750
        assert summary.delivery_fee == 1500
        assert summary.total_amount == 17250
        assert summary.escrow_status is None

    def test_follows_lifecycle(self, catalog):
        order_id = _create_order()
        _pay(order_id)
        assert _summary(order_id).escrow_status == "holding"

        current_domain.process(ShipOrder(order_id=order_id), asynchronous=False)
        current_domain.process(RecordDelivery(order_id=order_id), asynchronous=False)
        assert _summary(order_id).status == "delivered"

        current_domain.process(ConfirmDelivery(order_id=order_id), asynchronous=False)
        summary = _summary(order_id)
        assert summary.status == "completed"
        assert summary.escrow_status == "released"

    def test_cancelled_paid_order(self, catalog):
        order_id = _create_order()
        _pay(order_id)
        current_domain.process(CancelOrder(order_id=order_id, reason="Mistake"), asynchronous=False)

        summary = _summary(order_id)
        assert summary.status == "cancelled"
        assert summary.escrow_status == "refunded"

    def test_refund(self, catalog):
        order_id = _create_order()
        _pay(order_id)
        current_domain.process(ShipOrder(order_id=order_id), asynchronous=False)
        current_domain.process(RecordDelivery(order_id=order_id), asynchronous=False)
        current_domain.process(RequestRefund(order_id=order_id, reason="Damaged"), asynchronous=False)
        assert _summary(order_id).refund_status == "requested"

        current_domain.process(ApproveRefund(order_id=order_id), asynchronous=False)
        summary = _summary(order_id)
        assert summary.status == "refunded"
        assert summary.refund_status == "approved"


class TestHeldEscrow:
    def test_lifecycle_of_a_hold(self, catalog):
        paid_at = datetime(2026, 5, 4, 12, 0, tzinfo=UTC)
        order_id = _create_order()
        assert _held(order_id) is None

        _pay(order_id, paid_at=paid_at)
        held = _held(order_id)
        assert held.amount == 17250
        assert held.seller_amount == 17250 - 750

        current_domain.process(
            ReleaseEscrow(order_id=order_id, as_of=paid_at + timedelta(days=7)),
            asynchronous=False,
        )
        assert _held(order_id) is None
        assert _summary(order_id).escrow_status == "released"

    def test_cancel_before_payment_has_no_hold(self, catalog):
        order_id = _create_order()
        current_domain.process(CancelOrder(order_id=order_id, reason="Mistake"), asynchronous=False)

        assert _held(order_id) is None
