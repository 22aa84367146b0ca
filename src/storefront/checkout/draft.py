"""Order draft — the immutable payload a checkout hands to the order service."""

import json
from dataclasses import dataclass


@dataclass(frozen=True)
class DraftLine:
    product_id: str
    quantity: int


@dataclass(frozen=True)
class OrderDraft:
    """Everything needed to create an order, captured at the review step.

    ``delivery_address`` is set only for the delivery method; ``delivery_fee``
    is in minor units.
    """

    user_id: str
    store_id: str
    items: tuple[DraftLine, ...]
    delivery_method: str
    delivery_fee: int
    delivery_address: str | None = None
    delivery_notes: str | None = None
    buyer_note: str | None = None
    institution_id: str | None = None
    hall_id: str | None = None

    def items_json(self) -> str:
        return json.dumps([{"product_id": line.product_id, "quantity": line.quantity} for line in self.items])

    def to_payload(self) -> dict:
        """Order-creation payload; optional fields are omitted when empty."""
        payload = {
            "user_id": self.user_id,
            "store_id": self.store_id,
            "items": [{"product_id": line.product_id, "quantity": line.quantity} for line in self.items],
            "delivery_method": self.delivery_method,
            "delivery_fee": self.delivery_fee,
        }
        for key in ("delivery_address", "delivery_notes", "buyer_note", "institution_id", "hall_id"):
            value = getattr(self, key)
            if value:
                payload[key] = value
        return payload
