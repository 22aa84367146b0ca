"""Refunds — buyer requests and their external review.

A request only records the reason; the order keeps its status until the
request is approved (order refunded) or rejected (nothing changes).
"""

from protean import handle
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.order.order import Order


@storefront.command(part_of="Order")
class RequestRefund:
    order_id = Identifier(required=True)
    reason = String(required=True, max_length=500)


@storefront.command(part_of="Order")
class ApproveRefund:
    order_id = Identifier(required=True)
    refund_amount = Integer(min_value=0)  # Optional: defaults to total_amount


@storefront.command(part_of="Order")
class RejectRefund:
    order_id = Identifier(required=True)
    reason = String(max_length=500)


@storefront.command_handler(part_of=Order)
class RefundHandler:
    @handle(RequestRefund)
    def request_refund(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.request_refund(reason=command.reason)
        repo.add(order)

    @handle(ApproveRefund)
    def approve_refund(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.approve_refund(refund_amount=command.refund_amount)
        repo.add(order)

    @handle(RejectRefund)
    def reject_refund(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.reject_refund(reason=command.reason)
        repo.add(order)
