"""Configurable fake order service for development and testing.

Records every draft it receives and either hands out a fake order id or fails
with a configurable reason, so checkout success and failure paths can be
exercised without creating real orders.
"""

from uuid import uuid4

from storefront.checkout.draft import OrderDraft
from storefront.order_service.port import OrderService, OrderServiceError


class FakeOrderService(OrderService):
    """Configurable fake order service."""

    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.failure_reason: str = "Order service unavailable"
        self.drafts: list[OrderDraft] = []

    def configure(self, should_succeed: bool, failure_reason: str = "Order service unavailable") -> None:
        """Configure service behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def create_order(self, draft: OrderDraft) -> str:
        self.drafts.append(draft)
        if not self.should_succeed:
            raise OrderServiceError(self.failure_reason)
        return f"fake-order-{uuid4().hex[:12]}"
