"""Order creation — command and handler.

Lines arrive as product ids and quantities only. Names, images and prices are
snapshotted from the catalog here so an order never trusts client-side prices.
"""

import json

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from storefront.cart.pricing import DeliveryMethod, delivery_fee_for, price_lines
from storefront.catalog import get_catalog
from storefront.catalog.port import ProductNotFound
from storefront.domain import storefront
from storefront.order.order import Order


@storefront.command(part_of="Order")
class CreateOrder:
    user_id = Identifier(required=True)
    store_id = Identifier(required=True)
    items = Text(required=True)  # JSON: list of {product_id, quantity}
    delivery_method = String(required=True, choices=DeliveryMethod)
    delivery_fee = Integer(default=0, min_value=0)
    delivery_address = String(max_length=500)
    delivery_notes = Text()
    buyer_note = Text()
    institution_id = Identifier()
    hall_id = Identifier()


def _snapshot_lines(store_id, lines):
    catalog = get_catalog()
    snapshots = []
    for line in lines:
        quantity = int(line.get("quantity") or 0)
        if quantity < 1:
            raise ValidationError({"items": ["Every item needs a quantity of at least 1"]})

        try:
            product = catalog.get_product(str(line["product_id"]))
        except ProductNotFound as exc:
            raise ValidationError({"items": [str(exc)]}) from exc

        if str(product.store_id) != str(store_id):
            raise ValidationError({"items": [f"{product.name} is not sold by this store"]})
        if product.quantity < quantity:
            raise ValidationError({"items": [f"Only {product.quantity} of {product.name} left in stock"]})

        snapshots.append(
            {
                "product_id": str(product.id),
                "name": product.name,
                "image": product.image,
                "unit_price": product.price,
                "quantity": quantity,
            }
        )
    return snapshots


@storefront.command_handler(part_of=Order)
class CreateOrderHandler:
    @handle(CreateOrder)
    def create_order(self, command):
        lines = json.loads(command.items) if isinstance(command.items, str) else command.items
        items_data = _snapshot_lines(command.store_id, lines or [])

        expected_fee = delivery_fee_for(command.delivery_method)
        if (command.delivery_fee or 0) != expected_fee:
            raise ValidationError({"delivery_fee": [f"Delivery fee must be {expected_fee} for {command.delivery_method}"]})

        pricing = price_lines(
            ((item["unit_price"], item["quantity"]) for item in items_data),
            command.delivery_method,
        )

        order = Order.create(
            user_id=command.user_id,
            store_id=command.store_id,
            items_data=items_data,
            delivery={
                "method": command.delivery_method,
                "address": command.delivery_address,
                "notes": command.delivery_notes,
            },
            pricing=pricing,
            buyer={
                "buyer_note": command.buyer_note,
                "institution_id": command.institution_id,
                "hall_id": command.hall_id,
            },
        )
        current_domain.repository_for(Order).add(order)
        return str(order.id)
