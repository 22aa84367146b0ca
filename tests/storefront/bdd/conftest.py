"""Shared BDD fixtures and step definitions for the Storefront."""

import json
from datetime import UTC, datetime, timedelta

import pytest
from protean.exceptions import ValidationError
from protean.testing import given as given_
from pytest_bdd import given, parsers, then
from storefront.order.events import (
    DeliveryConfirmed,
    EscrowReleased,
    OrderCancelled,
    OrderCreated,
    OrderDelivered,
    OrderDisputed,
    OrderPaid,
    OrderShipped,
)
from storefront.order.order import Order

# Map event name strings to classes for dynamic lookup in Then steps
_ORDER_EVENT_CLASSES = {
    "OrderCreated": OrderCreated,
    "OrderPaid": OrderPaid,
    "OrderShipped": OrderShipped,
    "OrderDelivered": OrderDelivered,
    "DeliveryConfirmed": DeliveryConfirmed,
    "EscrowReleased": EscrowReleased,
    "OrderCancelled": OrderCancelled,
    "OrderDisputed": OrderDisputed,
}


# ---------------------------------------------------------------------------
# Scalar fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def order_id():
    return "ord-001"


@pytest.fixture()
def paid_at():
    return datetime(2026, 3, 2, 9, 30, tzinfo=UTC)


@pytest.fixture()
def error():
    """Container for captured validation errors (used by checkout tests)."""
    return {"exc": None}


# ---------------------------------------------------------------------------
# Event fixtures (past tense: what happened)
# ---------------------------------------------------------------------------
@pytest.fixture()
def order_created(order_id):
    return OrderCreated(
        order_id=order_id,
        order_number="CPZ-1A2B3C",
        user_id="user-001",
        store_id="store-books",
        items=json.dumps(
            [
                {
                    "id": "item-1",
                    "product_id": "prod-textbook",
                    "name": "Intro to Economics",
                    "unit_price": 10000,
                    "quantity": 2,
                }
            ]
        ),
        delivery_method="delivery",
        delivery_address="Room 12, Akuafo Hall",
        subtotal=20000,
        delivery_fee=1500,
        service_fee=1000,
        discount=0,
        total_amount=22500,
        currency="GHS",
        created_at=datetime.now(UTC),
    )


@pytest.fixture()
def order_paid(order_id, paid_at):
    return OrderPaid(
        order_id=order_id,
        store_id="store-books",
        payment_reference="MOMO-001",
        payment_method="mobile_money",
        amount=22500,
        buyer_fee=1000,
        platform_fee=1000,
        seller_commission=0,
        seller_amount=21500,
        hold_until=paid_at + timedelta(days=7),
        paid_at=paid_at,
    )


@pytest.fixture()
def order_shipped(order_id):
    return OrderShipped(order_id=order_id, shipped_at=datetime.now(UTC))


@pytest.fixture()
def order_delivered(order_id):
    return OrderDelivered(order_id=order_id, delivered_at=datetime.now(UTC))


@pytest.fixture()
def escrow_released(order_id, paid_at):
    return EscrowReleased(
        order_id=order_id,
        store_id="store-books",
        seller_amount=21500,
        order_completed=False,
        released_at=paid_at + timedelta(days=7),
    )


# ---------------------------------------------------------------------------
# Given steps: Order
# ---------------------------------------------------------------------------
@given("an order was placed", target_fixture="order")
def _(order_created):
    return given_(Order, order_created)


@given("the order was paid", target_fixture="order")
def _(order, order_paid):
    return order.after(order_paid)


@given("the order was shipped", target_fixture="order")
def _(order, order_shipped):
    return order.after(order_shipped)


@given("the order was delivered", target_fixture="order")
def _(order, order_delivered):
    return order.after(order_delivered)


@given("the escrow hold ran out", target_fixture="order")
def _(order, escrow_released):
    return order.after(escrow_released)


# ---------------------------------------------------------------------------
# Then steps: Order
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the order status is "{status}"'))
def _(order, status):
    assert order.status == status


@then(parsers.cfparse('the escrow status is "{status}"'))
def _(order, status):
    assert order.escrow.status == status


@then("the order action fails with a validation error")
def _(order):
    assert order.rejected
    assert isinstance(order.rejection, ValidationError)


@then(parsers.cfparse("an {event_type} order event is raised"))
def _(order, event_type):
    event_cls = _ORDER_EVENT_CLASSES[event_type]
    assert event_cls in order.events


@then(parsers.cfparse("a {event_type} order event is raised"))
def _(order, event_type):
    event_cls = _ORDER_EVENT_CLASSES[event_type]
    assert event_cls in order.events
