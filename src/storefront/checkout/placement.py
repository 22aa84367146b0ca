"""Order placement — the review → submitted transition.

The draft is handed to the order service port. A failure leaves the session
at review with a generic, retryable error and keeps the draft data; there is
no automatic retry. On success the session is submitted and the cart emptied.
"""

import structlog
from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from storefront.cart.cart import Cart
from storefront.checkout.session import CheckoutSession
from storefront.domain import storefront
from storefront.order_service import get_order_service
from storefront.order_service.port import OrderServiceError

logger = structlog.get_logger(__name__)


@storefront.command(part_of="CheckoutSession")
class PlaceOrder:
    checkout_id = Identifier(required=True)


@storefront.command_handler(part_of=CheckoutSession)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        sessions = current_domain.repository_for(CheckoutSession)
        carts = current_domain.repository_for(Cart)

        session = sessions.get(command.checkout_id)
        cart = carts.get(session.cart_id)
        draft = session.build_draft(cart)

        try:
            order_id = get_order_service().create_order(draft)
        except OrderServiceError as exc:
            logger.warning(
                "Order placement failed",
                checkout_id=str(session.id),
                user_id=str(session.user_id),
                store_id=str(session.store_id),
                error=str(exc),
            )
            session.record_submission_failure()
            sessions.add(session)
            return None

        logger.info(
            "Order placed",
            checkout_id=str(session.id),
            order_id=str(order_id),
            item_count=cart.item_count,
        )
        session.mark_submitted(order_id)
        sessions.add(session)

        cart.clear()
        carts.add(cart)
        return str(order_id)
