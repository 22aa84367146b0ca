"""Delivery confirmation — the buyer completes the order and releases escrow."""

import structlog
from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.order.order import Order

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Order")
class ConfirmDelivery:
    order_id = Identifier(required=True)


@storefront.command_handler(part_of=Order)
class ConfirmDeliveryHandler:
    @handle(ConfirmDelivery)
    def confirm_delivery(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.confirm_delivery()
        repo.add(order)

        logger.info(
            "Delivery confirmed",
            order_id=str(order.id),
            store_id=str(order.store_id),
            seller_amount=order.escrow.seller_amount,
        )
