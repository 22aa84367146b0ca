"""Domain events for the Cart aggregate."""

from protean.fields import Boolean, DateTime, Identifier, Integer

from storefront.domain import storefront


@storefront.event(part_of="Cart")
class CartItemAdded:
    """A product was added to the cart, or its line quantity was increased."""

    __version__ = 1

    cart_id = Identifier(required=True)
    product_id = Identifier(required=True)
    store_id = Identifier(required=True)
    requested_quantity = Integer(required=True)
    quantity = Integer(required=True)  # resulting line quantity
    clamped = Boolean(default=False)


@storefront.event(part_of="Cart")
class CartQuantityUpdated:
    """The quantity of a cart line was changed."""

    __version__ = 1

    cart_id = Identifier(required=True)
    product_id = Identifier(required=True)
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)
    clamped = Boolean(default=False)


@storefront.event(part_of="Cart")
class CartItemRemoved:
    """A product was removed from the cart."""

    __version__ = 1

    cart_id = Identifier(required=True)
    product_id = Identifier(required=True)


@storefront.event(part_of="Cart")
class CartCleared:
    """All items were removed, explicitly or after an order was placed."""

    __version__ = 1

    cart_id = Identifier(required=True)
    cleared_at = DateTime(required=True)
