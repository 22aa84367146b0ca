"""Order service factory.

Provides get_order_service() / set_order_service() to swap implementations:
- DomainOrderService creates orders in this domain (default)
- FakeOrderService for tests that need to control the outcome
"""

from storefront.order_service.domain_adapter import DomainOrderService
from storefront.order_service.port import OrderService

_current_service: OrderService | None = None


def get_order_service() -> OrderService:
    """Return the current order service. Defaults to DomainOrderService."""
    global _current_service
    if _current_service is None:
        _current_service = DomainOrderService()
    return _current_service


def set_order_service(service: OrderService) -> None:
    """Override the active order service (useful for tests)."""
    global _current_service
    _current_service = service


def reset_order_service() -> None:
    """Reset to default order service."""
    global _current_service
    _current_service = None
