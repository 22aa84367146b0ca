"""Order service port (abstract interface).

Checkout hands a finished OrderDraft to this port and gets back the id of the
created order. The default adapter creates the order in this domain; a remote
order API can be plugged in without touching the checkout flow.
"""

from abc import ABC, abstractmethod

from storefront.checkout.draft import OrderDraft


class OrderServiceError(Exception):
    """The order could not be created. Retrying the same draft is safe."""


class OrderService(ABC):
    """Abstract order-creation interface."""

    @abstractmethod
    def create_order(self, draft: OrderDraft) -> str:
        """Create an order from the draft and return its id, or raise OrderServiceError."""
        ...
