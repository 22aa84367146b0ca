"""Order fulfillment — seller-side commands and handler."""

from protean import handle
from protean.fields import Identifier, Text
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.order.order import Order


@storefront.command(part_of="Order")
class MarkProcessing:
    """Signal that the seller has started preparing the order."""

    order_id = Identifier(required=True)


@storefront.command(part_of="Order")
class ShipOrder:
    """Record that the seller has dispatched the order (or it is ready for pickup)."""

    order_id = Identifier(required=True)
    seller_note = Text()


@storefront.command(part_of="Order")
class RecordDelivery:
    order_id = Identifier(required=True)


@storefront.command_handler(part_of=Order)
class FulfillmentHandler:
    @handle(MarkProcessing)
    def mark_processing(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.mark_processing()
        repo.add(order)

    @handle(ShipOrder)
    def ship_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.ship(seller_note=command.seller_note)
        repo.add(order)

    @handle(RecordDelivery)
    def record_delivery(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.record_delivery()
        repo.add(order)
