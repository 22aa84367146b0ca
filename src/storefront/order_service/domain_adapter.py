"""Order service adapter that creates orders inside the storefront domain."""

import structlog
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from storefront.checkout.draft import OrderDraft
from storefront.order_service.port import OrderService, OrderServiceError

logger = structlog.get_logger(__name__)


class DomainOrderService(OrderService):
    """Dispatches a CreateOrder command synchronously and returns the new order id."""

    def create_order(self, draft: OrderDraft) -> str:
        from storefront.order.creation import CreateOrder

        try:
            return current_domain.process(
                CreateOrder(
                    user_id=draft.user_id,
                    store_id=draft.store_id,
                    items=draft.items_json(),
                    delivery_method=draft.delivery_method,
                    delivery_fee=draft.delivery_fee,
                    delivery_address=draft.delivery_address,
                    delivery_notes=draft.delivery_notes,
                    buyer_note=draft.buyer_note,
                    institution_id=draft.institution_id,
                    hall_id=draft.hall_id,
                ),
                asynchronous=False,
            )
        except (ValidationError, ObjectNotFoundError) as exc:
            logger.warning(
                "Order creation rejected",
                user_id=draft.user_id,
                store_id=draft.store_id,
                error=str(exc),
            )
            raise OrderServiceError(str(exc)) from exc
