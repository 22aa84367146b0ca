"""Storefront bounded context — single-store carts, checkout and escrow-backed orders.

Handles the buyer's cart (CQRS), the three-step checkout flow that turns a
cart into an order draft, and the order lifecycle (event-sourced) with its
escrow hold and release.
"""

import structlog
from protean.domain import Domain

storefront = Domain(name="storefront")

logger = structlog.get_logger(__name__)
