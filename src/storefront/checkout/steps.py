"""Checkout steps — commands and handler for starting and navigating a checkout."""

from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from storefront.cart.cart import Cart
from storefront.cart.pricing import DeliveryMethod
from storefront.checkout.session import CheckoutSession, MobileMoneyProvider, PaymentMethod
from storefront.domain import storefront
from storefront.identity.port import AuthenticatedUser


@storefront.command(part_of="CheckoutSession")
class StartCheckout:
    """Open a checkout for the buyer's cart. Buyer details come from the auth session."""

    cart_id = Identifier(required=True)
    user_id = Identifier(required=True)
    phone_number = String(max_length=20)
    institution_id = Identifier()
    hall_id = Identifier()


@storefront.command(part_of="CheckoutSession")
class ChooseDelivery:
    checkout_id = Identifier(required=True)
    delivery_method = String(required=True, choices=DeliveryMethod)
    delivery_address = String(max_length=500)
    delivery_notes = Text()


@storefront.command(part_of="CheckoutSession")
class ChoosePayment:
    checkout_id = Identifier(required=True)
    payment_method = String(required=True, choices=PaymentMethod)
    provider = String(choices=MobileMoneyProvider)
    phone_number = String(max_length=20)


@storefront.command(part_of="CheckoutSession")
class LeaveBuyerNote:
    checkout_id = Identifier(required=True)
    note = Text()


@storefront.command(part_of="CheckoutSession")
class AdvanceCheckout:
    checkout_id = Identifier(required=True)


@storefront.command(part_of="CheckoutSession")
class GoBackInCheckout:
    checkout_id = Identifier(required=True)


@storefront.command_handler(part_of=CheckoutSession)
class CheckoutStepsHandler:
    @handle(StartCheckout)
    def start_checkout(self, command):
        cart = current_domain.repository_for(Cart).get(command.cart_id)
        user = AuthenticatedUser(
            id=str(command.user_id),
            phone_number=command.phone_number,
            institution_id=command.institution_id,
            hall_id=command.hall_id,
        )
        session = CheckoutSession.start(user, cart)
        current_domain.repository_for(CheckoutSession).add(session)
        return str(session.id)

    @handle(ChooseDelivery)
    def choose_delivery(self, command):
        repo = current_domain.repository_for(CheckoutSession)
        session = repo.get(command.checkout_id)
        session.choose_delivery(
            command.delivery_method,
            address=command.delivery_address,
            notes=command.delivery_notes,
        )
        repo.add(session)

    @handle(ChoosePayment)
    def choose_payment(self, command):
        repo = current_domain.repository_for(CheckoutSession)
        session = repo.get(command.checkout_id)
        session.choose_payment(
            command.payment_method,
            provider=command.provider,
            phone_number=command.phone_number,
        )
        repo.add(session)

    @handle(LeaveBuyerNote)
    def leave_buyer_note(self, command):
        repo = current_domain.repository_for(CheckoutSession)
        session = repo.get(command.checkout_id)
        session.leave_note(command.note)
        repo.add(session)

    @handle(AdvanceCheckout)
    def advance_checkout(self, command):
        repo = current_domain.repository_for(CheckoutSession)
        session = repo.get(command.checkout_id)
        session.advance()
        repo.add(session)
        return session.step

    @handle(GoBackInCheckout)
    def go_back(self, command):
        repo = current_domain.repository_for(CheckoutSession)
        session = repo.get(command.checkout_id)
        session.go_back()
        repo.add(session)
        return session.step
