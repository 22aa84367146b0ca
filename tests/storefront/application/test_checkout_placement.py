"""Application tests for the checkout flow and order placement.

Covers the real path through DomainOrderService (a CreateOrder command in this
domain) as well as controlled failures via FakeOrderService.
"""

import pytest
from protean import current_domain
from protean.exceptions import ValidationError
from storefront.cart.cart import Cart
from storefront.cart.items import AddToCart
from storefront.cart.management import CreateCart
from storefront.checkout.placement import PlaceOrder
from storefront.checkout.session import CheckoutSession, CheckoutStep
from storefront.checkout.steps import (
    AdvanceCheckout,
    ChooseDelivery,
    ChoosePayment,
    GoBackInCheckout,
    LeaveBuyerNote,
    StartCheckout,
)
from storefront.order.order import Order, OrderStatus
from storefront.order_service import set_order_service
from storefront.order_service.fake_adapter import FakeOrderService


def _cart_with_textbooks(quantity=2):
    cart_id = current_domain.process(CreateCart(user_id="user-001"), asynchronous=False)
    current_domain.process(
        AddToCart(cart_id=cart_id, product_id="prod-textbook", quantity=quantity),
        asynchronous=False,
    )
    return cart_id


def _start(cart_id):
    return current_domain.process(
        StartCheckout(
            cart_id=cart_id,
            user_id="user-001",
            phone_number="0241234567",
            institution_id="inst-ug",
            hall_id="hall-akuafo",
        ),
        asynchronous=False,
    )


def _to_review(checkout_id, delivery=False):
    if delivery:
        current_domain.process(
            ChooseDelivery(
                checkout_id=checkout_id,
                delivery_method="delivery",
                delivery_address="Room 12, Akuafo Hall",
            ),
            asynchronous=False,
        )
    current_domain.process(AdvanceCheckout(checkout_id=checkout_id), asynchronous=False)
    return current_domain.process(AdvanceCheckout(checkout_id=checkout_id), asynchronous=False)


def _session(checkout_id):
    return current_domain.repository_for(CheckoutSession).get(checkout_id)


class TestCheckoutSteps:
    def test_navigation_returns_step(self, catalog):
        checkout_id = _start(_cart_with_textbooks())

        assert current_domain.process(AdvanceCheckout(checkout_id=checkout_id), asynchronous=False) == "payment"
        assert current_domain.process(GoBackInCheckout(checkout_id=checkout_id), asynchronous=False) == "delivery"

    def test_delivery_guard_keeps_step(self, catalog):
        checkout_id = _start(_cart_with_textbooks())
        current_domain.process(ChooseDelivery(checkout_id=checkout_id, delivery_method="delivery"), asynchronous=False)

        with pytest.raises(ValidationError):
            current_domain.process(AdvanceCheckout(checkout_id=checkout_id), asynchronous=False)

        assert _session(checkout_id).current_step == CheckoutStep.DELIVERY

    def test_invalid_delivery_method_rejected(self, catalog):
        checkout_id = _start(_cart_with_textbooks())

        with pytest.raises(ValidationError):
            current_domain.process(ChooseDelivery(checkout_id=checkout_id, delivery_method="drone"), asynchronous=False)

    def test_payment_choice_persists(self, catalog):
        checkout_id = _start(_cart_with_textbooks())
        current_domain.process(AdvanceCheckout(checkout_id=checkout_id), asynchronous=False)
        current_domain.process(
            ChoosePayment(
                checkout_id=checkout_id,
                payment_method="mobile_money",
                provider="vodafone",
                phone_number="0201234567",
            ),
            asynchronous=False,
        )

        payment = _session(checkout_id).payment
        assert payment.provider == "vodafone"
        assert payment.phone_number == "0201234567"

    def test_cannot_checkout_empty_cart(self):
        cart_id = current_domain.process(CreateCart(user_id="user-001"), asynchronous=False)

        with pytest.raises(ValidationError):
            _start(cart_id)


class TestPlaceOrder:
    def test_creates_order_and_clears_cart(self, catalog):
        cart_id = _cart_with_textbooks()
        checkout_id = _start(cart_id)
        current_domain.process(LeaveBuyerNote(checkout_id=checkout_id, note="Please call"), asynchronous=False)
        assert _to_review(checkout_id, delivery=True) == "review"

        order_id = current_domain.process(PlaceOrder(checkout_id=checkout_id), asynchronous=False)

        order = current_domain.repository_for(Order).get(order_id)
        assert order.status == OrderStatus.PENDING.value
        assert order.user_id == "user-001"
        assert order.total_amount == 22500
        assert order.delivery_address == "Room 12, Akuafo Hall"
        assert order.buyer_note == "Please call"
        assert order.hall_id == "hall-akuafo"

        session = _session(checkout_id)
        assert session.current_step == CheckoutStep.SUBMITTED
        assert session.order_id == order_id

        assert current_domain.repository_for(Cart).get(cart_id).is_empty

    def test_order_prices_come_from_catalog(self, catalog, textbook):
        cart_id = _cart_with_textbooks()
        checkout_id = _start(cart_id)
        _to_review(checkout_id)

        order_id = current_domain.process(PlaceOrder(checkout_id=checkout_id), asynchronous=False)

        order = current_domain.repository_for(Order).get(order_id)
        assert order.items[0].unit_price == textbook.price
        assert order.items[0].name == "Intro to Economics"
        assert order.total_amount == 21000

    def test_stock_drop_fails_submission(self, catalog):
        cart_id = _cart_with_textbooks(quantity=2)
        checkout_id = _start(cart_id)
        _to_review(checkout_id)
        catalog.set_stock("prod-textbook", 1)

        result = current_domain.process(PlaceOrder(checkout_id=checkout_id), asynchronous=False)

        assert result is None
        session = _session(checkout_id)
        assert session.current_step == CheckoutStep.REVIEW
        assert session.error == "Failed to place order. Please try again."
        assert not current_domain.repository_for(Cart).get(cart_id).is_empty

    def test_service_failure_keeps_draft_data(self, catalog):
        fake = FakeOrderService()
        fake.configure(should_succeed=False)
        set_order_service(fake)

        cart_id = _cart_with_textbooks()
        checkout_id = _start(cart_id)
        _to_review(checkout_id, delivery=True)

        assert current_domain.process(PlaceOrder(checkout_id=checkout_id), asynchronous=False) is None

        session = _session(checkout_id)
        assert session.error == "Failed to place order. Please try again."
        assert session.delivery.address == "Room 12, Akuafo Hall"
        assert len(fake.drafts) == 1

    def test_no_automatic_retry(self, catalog):
        fake = FakeOrderService()
        fake.configure(should_succeed=False)
        set_order_service(fake)

        checkout_id = _start(_cart_with_textbooks())
        _to_review(checkout_id)
        current_domain.process(PlaceOrder(checkout_id=checkout_id), asynchronous=False)

        assert len(fake.drafts) == 1

    def test_manual_retry_succeeds(self, catalog):
        fake = FakeOrderService()
        fake.configure(should_succeed=False)
        set_order_service(fake)

        cart_id = _cart_with_textbooks()
        checkout_id = _start(cart_id)
        _to_review(checkout_id)
        current_domain.process(PlaceOrder(checkout_id=checkout_id), asynchronous=False)

        fake.configure(should_succeed=True)
        order_id = current_domain.process(PlaceOrder(checkout_id=checkout_id), asynchronous=False)

        assert order_id.startswith("fake-order-")
        session = _session(checkout_id)
        assert session.error is None
        assert session.current_step == CheckoutStep.SUBMITTED
        assert fake.drafts[0] == fake.drafts[1]

    def test_place_only_from_review(self, catalog):
        checkout_id = _start(_cart_with_textbooks())

        with pytest.raises(ValidationError):
            current_domain.process(PlaceOrder(checkout_id=checkout_id), asynchronous=False)
