"""CheckoutSession aggregate (CQRS) — the buyer's walk from cart to placed order.

State Machine:
    DELIVERY ⇄ PAYMENT ⇄ REVIEW → SUBMITTED

Moving forward is guarded per step (a delivery needs an address, mobile money
needs a phone number). Moving back is always allowed, clears the last error
and keeps whatever the buyer entered. SUBMITTED is terminal.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, String, Text, ValueObject

from storefront.cart.pricing import DeliveryMethod, delivery_fee_for
from storefront.checkout.draft import DraftLine, OrderDraft
from storefront.checkout.events import (
    CheckoutStarted,
    CheckoutStepChanged,
    CheckoutSubmissionFailed,
    CheckoutSubmitted,
    DeliveryChosen,
    PaymentChosen,
)
from storefront.domain import storefront

SUBMISSION_FAILED_MESSAGE = "Failed to place order. Please try again."


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class CheckoutStep(Enum):
    DELIVERY = "delivery"
    PAYMENT = "payment"
    REVIEW = "review"
    SUBMITTED = "submitted"


class PaymentMethod(Enum):
    MOBILE_MONEY = "mobile_money"
    CARD = "card"


class MobileMoneyProvider(Enum):
    MTN = "mtn"
    VODAFONE = "vodafone"
    AIRTELTIGO = "airteltigo"


_NEXT_STEP = {
    CheckoutStep.DELIVERY: CheckoutStep.PAYMENT,
    CheckoutStep.PAYMENT: CheckoutStep.REVIEW,
}

_PREVIOUS_STEP = {
    CheckoutStep.PAYMENT: CheckoutStep.DELIVERY,
    CheckoutStep.REVIEW: CheckoutStep.PAYMENT,
}


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@storefront.value_object(part_of="CheckoutSession")
class DeliveryDetails:
    """How the order reaches the buyer. The address only matters for delivery."""

    method = String(choices=DeliveryMethod, default=DeliveryMethod.PICKUP.value)
    address = String(max_length=500)
    notes = Text()


@storefront.value_object(part_of="CheckoutSession")
class PaymentDetails:
    """Payment choice. Provider and phone number only exist for mobile money."""

    method = String(choices=PaymentMethod, default=PaymentMethod.MOBILE_MONEY.value)
    provider = String(choices=MobileMoneyProvider)
    phone_number = String(max_length=20)

    @classmethod
    def mobile_money(cls, provider=MobileMoneyProvider.MTN.value, phone_number=None):
        return cls(
            method=PaymentMethod.MOBILE_MONEY.value,
            provider=provider or MobileMoneyProvider.MTN.value,
            phone_number=phone_number,
        )

    @classmethod
    def card(cls):
        return cls(method=PaymentMethod.CARD.value)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@storefront.aggregate
class CheckoutSession:
    user_id = Identifier(required=True)
    cart_id = Identifier(required=True)
    store_id = Identifier(required=True)
    step = String(choices=CheckoutStep, default=CheckoutStep.DELIVERY.value)
    delivery = ValueObject(DeliveryDetails)
    payment = ValueObject(PaymentDetails)
    known_phone_number = String(max_length=20)  # Last mobile money number entered
    buyer_note = Text()
    institution_id = Identifier()
    hall_id = Identifier()
    error = String(max_length=500)
    order_id = Identifier()
    started_at = DateTime()
    updated_at = DateTime()
    submitted_at = DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def start(cls, user, cart):
        """Open a checkout for a signed-in buyer's cart, pre-filled from their profile."""
        if cart.is_empty:
            raise ValidationError({"cart": ["Your cart is empty"]})
        if cart.user_id and str(cart.user_id) != str(user.id):
            raise ValidationError({"cart": ["This cart belongs to another buyer"]})

        now = datetime.now(UTC)
        session = cls(
            user_id=user.id,
            cart_id=str(cart.id),
            store_id=str(cart.store_id),
            step=CheckoutStep.DELIVERY.value,
            delivery=DeliveryDetails(method=DeliveryMethod.PICKUP.value),
            payment=PaymentDetails.mobile_money(phone_number=user.phone_number),
            known_phone_number=user.phone_number,
            institution_id=user.institution_id,
            hall_id=user.hall_id,
            started_at=now,
            updated_at=now,
        )
        session.raise_(
            CheckoutStarted(
                checkout_id=str(session.id),
                user_id=str(user.id),
                cart_id=str(cart.id),
                store_id=str(cart.store_id),
                started_at=now,
            )
        )
        return session

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    @property
    def current_step(self):
        return CheckoutStep(self.step)

    def _assert_at(self, step, action):
        if self.current_step != step:
            raise ValidationError({"step": [f"{action} is only possible at the {step.value} step"]})

    def _move_to(self, target):
        previous = self.current_step
        self.step = target.value
        self.error = None
        self.updated_at = datetime.now(UTC)
        self.raise_(
            CheckoutStepChanged(
                checkout_id=str(self.id),
                from_step=previous.value,
                to_step=target.value,
            )
        )

    # -------------------------------------------------------------------
    # Step data
    # -------------------------------------------------------------------
    def choose_delivery(self, method, address=None, notes=None):
        self._assert_at(CheckoutStep.DELIVERY, "Choosing delivery")
        method = DeliveryMethod(method)
        self.delivery = DeliveryDetails(method=method.value, address=address, notes=notes)
        self.updated_at = datetime.now(UTC)
        self.raise_(
            DeliveryChosen(
                checkout_id=str(self.id),
                delivery_method=method.value,
                delivery_address=address if method == DeliveryMethod.DELIVERY else None,
            )
        )

    def choose_payment(self, method, provider=None, phone_number=None):
        """Pick how to pay. Without a new phone number the last known one is kept."""
        self._assert_at(CheckoutStep.PAYMENT, "Choosing payment")
        method = PaymentMethod(method)
        if phone_number is None:
            phone_number = self.known_phone_number
        else:
            self.known_phone_number = phone_number
        if method == PaymentMethod.MOBILE_MONEY:
            self.payment = PaymentDetails.mobile_money(provider=provider, phone_number=phone_number)
        else:
            self.payment = PaymentDetails.card()
        self.updated_at = datetime.now(UTC)
        self.raise_(
            PaymentChosen(
                checkout_id=str(self.id),
                payment_method=method.value,
                provider=self.payment.provider,
            )
        )

    def leave_note(self, note):
        if self.current_step == CheckoutStep.SUBMITTED:
            raise ValidationError({"step": ["Checkout has already been submitted"]})
        self.buyer_note = note or None
        self.updated_at = datetime.now(UTC)

    # -------------------------------------------------------------------
    # Navigation
    # -------------------------------------------------------------------
    def advance(self):
        """Move to the next step if the current step's required fields are filled in."""
        current = self.current_step
        if current not in _NEXT_STEP:
            raise ValidationError({"step": [f"Cannot advance from the {current.value} step"]})

        if current == CheckoutStep.DELIVERY:
            needs_address = DeliveryMethod(self.delivery.method) == DeliveryMethod.DELIVERY
            if needs_address and not (self.delivery.address or "").strip():
                raise ValidationError({"delivery_address": ["Please enter a delivery address"]})
        elif current == CheckoutStep.PAYMENT:
            needs_phone = PaymentMethod(self.payment.method) == PaymentMethod.MOBILE_MONEY
            if needs_phone and not (self.payment.phone_number or "").strip():
                raise ValidationError({"phone_number": ["Please enter your phone number"]})

        self._move_to(_NEXT_STEP[current])

    def go_back(self):
        current = self.current_step
        if current not in _PREVIOUS_STEP:
            raise ValidationError({"step": [f"Cannot go back from the {current.value} step"]})
        self._move_to(_PREVIOUS_STEP[current])

    # -------------------------------------------------------------------
    # Submission
    # -------------------------------------------------------------------
    def build_draft(self, cart):
        """Freeze the checkout and cart into an OrderDraft. Only possible at review."""
        self._assert_at(CheckoutStep.REVIEW, "Placing the order")
        if cart.is_empty:
            raise ValidationError({"cart": ["Your cart is empty"]})
        if str(cart.store_id) != str(self.store_id):
            raise ValidationError({"cart": ["The cart changed store since checkout started"]})

        method = DeliveryMethod(self.delivery.method)
        is_delivery = method == DeliveryMethod.DELIVERY
        return OrderDraft(
            user_id=str(self.user_id),
            store_id=str(self.store_id),
            items=tuple(DraftLine(product_id=str(i.product_id), quantity=i.quantity) for i in cart.items),
            delivery_method=method.value,
            delivery_fee=delivery_fee_for(method),
            delivery_address=self.delivery.address if is_delivery else None,
            delivery_notes=self.delivery.notes or None,
            buyer_note=self.buyer_note or None,
            institution_id=str(self.institution_id) if self.institution_id else None,
            hall_id=str(self.hall_id) if self.hall_id else None,
        )

    def record_submission_failure(self, reason=SUBMISSION_FAILED_MESSAGE):
        """Stay at review with a retryable error; entered data is kept for resubmission."""
        self._assert_at(CheckoutStep.REVIEW, "Recording a failed submission")
        now = datetime.now(UTC)
        self.error = reason
        self.updated_at = now
        self.raise_(
            CheckoutSubmissionFailed(
                checkout_id=str(self.id),
                reason=reason,
                failed_at=now,
            )
        )

    def mark_submitted(self, order_id):
        self._assert_at(CheckoutStep.REVIEW, "Submitting")
        now = datetime.now(UTC)
        self.step = CheckoutStep.SUBMITTED.value
        self.order_id = order_id
        self.error = None
        self.submitted_at = now
        self.updated_at = now
        self.raise_(
            CheckoutSubmitted(
                checkout_id=str(self.id),
                order_id=str(order_id),
                submitted_at=now,
            )
        )
