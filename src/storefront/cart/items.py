"""Cart item management — commands and handler.

Products are resolved through the catalog port so every add or quantity
change clamps against current stock.
"""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, Integer
from protean.utils.globals import current_domain

from storefront.cart.cart import Cart
from storefront.catalog import get_catalog
from storefront.catalog.port import ProductNotFound
from storefront.domain import storefront


@storefront.command(part_of="Cart")
class AddToCart:
    cart_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(default=1, min_value=1)


@storefront.command(part_of="Cart")
class UpdateCartQuantity:
    """Set a line quantity; zero or less removes the line."""

    cart_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True)


@storefront.command(part_of="Cart")
class RemoveFromCart:
    cart_id = Identifier(required=True)
    product_id = Identifier(required=True)


def _lookup_product(product_id):
    try:
        return get_catalog().get_product(str(product_id))
    except ProductNotFound as exc:
        raise ValidationError({"product_id": [str(exc)]}) from exc


@storefront.command_handler(part_of=Cart)
class ManageCartItemsHandler:
    @handle(AddToCart)
    def add_to_cart(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.get(command.cart_id)
        cart.add_item(_lookup_product(command.product_id), quantity=command.quantity or 1)
        repo.add(cart)

    @handle(UpdateCartQuantity)
    def update_cart_quantity(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.get(command.cart_id)
        available = None
        if command.quantity >= 1:
            available = _lookup_product(command.product_id).quantity
        cart.update_quantity(command.product_id, command.quantity, available=available)
        repo.add(cart)

    @handle(RemoveFromCart)
    def remove_from_cart(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.get(command.cart_id)
        cart.remove_item(command.product_id)
        repo.add(cart)
