"""Order disputes — command and handler."""

from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.order.order import DisputeReason, Order


@storefront.command(part_of="Order")
class OpenDispute:
    order_id = Identifier(required=True)
    reason = String(required=True, choices=DisputeReason)
    description = Text()


@storefront.command_handler(part_of=Order)
class OpenDisputeHandler:
    @handle(OpenDispute)
    def open_dispute(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.open_dispute(reason=command.reason, description=command.description)
        repo.add(order)
