"""Order payment — command and handler.

The payment provider reports a captured payment; the order total moves into
escrow for the configured hold period.
"""

from protean import handle
from protean.fields import DateTime, Identifier, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.order.order import Order


@storefront.command(part_of="Order")
class RecordPayment:
    order_id = Identifier(required=True)
    payment_reference = String(required=True, max_length=255)
    payment_method = String(required=True, max_length=50)
    paid_at = DateTime()


@storefront.command_handler(part_of=Order)
class RecordPaymentHandler:
    @handle(RecordPayment)
    def record_payment(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.record_payment(
            payment_reference=command.payment_reference,
            payment_method=command.payment_method,
            paid_at=command.paid_at,
        )
        repo.add(order)
