"""Escrow auto-release — command, handler and the expiry sweep.

``release_expired_escrows`` is meant to be triggered periodically by an
external scheduler through the maintenance API endpoint. It reads the
HeldEscrow projection for holds whose deadline has passed and dispatches a
``ReleaseEscrow`` for each. Orders that cannot be released are logged and
skipped so one bad order never blocks the rest.

The sweep runs outside any unit of work. Each ``ReleaseEscrow`` commits on
its own, and the HeldEscrow rows it drops must not be written back by an
enclosing unit of work that read them first.
"""

from datetime import UTC, datetime

import structlog
from protean import handle
from protean.exceptions import InvalidOperationError, ObjectNotFoundError, ValidationError
from protean.fields import DateTime, Identifier
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.order.order import Order
from storefront.utils.clock import as_naive_utc

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Order")
class ReleaseEscrow:
    order_id = Identifier(required=True)
    as_of = DateTime()  # Optional: defaults to now


@storefront.command_handler(part_of=Order)
class EscrowReleaseHandler:
    @handle(ReleaseEscrow)
    def release_escrow(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.release_escrow(as_of=command.as_of or datetime.now(UTC))
        repo.add(order)

        logger.info(
            "Escrow released",
            order_id=str(order.id),
            store_id=str(order.store_id),
            seller_amount=order.escrow.seller_amount,
            order_status=order.status,
        )


def expired_hold_ids(as_of):
    """Order ids whose escrow hold deadline is at or before ``as_of``."""
    from storefront.projections.held_escrows import HeldEscrow

    cutoff = as_naive_utc(as_of)
    held = current_domain.repository_for(HeldEscrow)._dao.query.all().items
    return [
        str(record.order_id)
        for record in held
        if record.hold_until and as_naive_utc(record.hold_until) <= cutoff
    ]


def release_expired_escrows(as_of=None):
    """Release every held escrow whose deadline has passed. Returns how many were released."""
    as_of = as_of or datetime.now(UTC)

    logger.info("Checking for expired escrow holds", cutoff=as_naive_utc(as_of).isoformat())

    expired = expired_hold_ids(as_of)
    if not expired:
        logger.info("No expired escrow holds found")
        return 0

    released_count = 0
    for order_id in expired:
        try:
            current_domain.process(ReleaseEscrow(order_id=order_id, as_of=as_of), asynchronous=False)
            released_count += 1
        except (ValidationError, InvalidOperationError, ObjectNotFoundError) as exc:
            logger.warning(
                "Failed to release escrow",
                order_id=order_id,
                error=str(exc),
            )

    logger.info("Escrow release complete", released_count=released_count)
    return released_count
