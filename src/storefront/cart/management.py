"""Cart management — commands and handler.

Handles cart creation and explicit clearing.
"""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from storefront.cart.cart import Cart
from storefront.domain import storefront


@storefront.command(part_of="Cart")
class CreateCart:
    """Create an empty cart for a signed-in buyer or a guest session."""

    user_id = Identifier()  # Optional for guest carts
    session_id = String(max_length=255)


@storefront.command(part_of="Cart")
class ClearCart:
    cart_id = Identifier(required=True)


@storefront.command_handler(part_of=Cart)
class ManageCartHandler:
    @handle(CreateCart)
    def create_cart(self, command):
        cart = Cart.create(
            user_id=command.user_id,
            session_id=command.session_id,
        )
        current_domain.repository_for(Cart).add(cart)
        return str(cart.id)

    @handle(ClearCart)
    def clear_cart(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.get(command.cart_id)
        cart.clear()
        repo.add(cart)
