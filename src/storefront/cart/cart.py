"""Cart aggregate (CQRS) — a buyer's single-store basket.

A cart only ever holds products from one store. The first item decides the
store; items from any other store are rejected until the cart is emptied.
Quantities are clamped to the stock the catalog reported when the line was
last touched, so a cart line never asks for more than is available.
"""

from datetime import UTC, datetime

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Identifier, Integer, String

from storefront.cart.events import (
    CartCleared,
    CartItemAdded,
    CartItemRemoved,
    CartQuantityUpdated,
)
from storefront.domain import storefront


@storefront.entity(part_of="Cart")
class CartItem:
    product_id = Identifier(required=True)
    store_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    image = String(max_length=1000)
    unit_price = Integer(required=True, min_value=0)
    quantity = Integer(required=True, min_value=1)
    available_quantity = Integer(min_value=0)
    added_at = DateTime()

    @property
    def line_total(self):
        return self.unit_price * self.quantity


@storefront.aggregate
class Cart:
    user_id = Identifier()  # Nullable for guest carts
    session_id = String(max_length=255)
    store_id = Identifier()
    store_name = String(max_length=255)
    store_slug = String(max_length=255)
    items = HasMany(CartItem)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def items_must_belong_to_cart_store(self):
        for item in self.items or []:
            if str(item.store_id) != str(self.store_id):
                raise ValidationError({"store_id": ["All cart items must come from the same store"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, user_id=None, session_id=None):
        now = datetime.now(UTC)
        return cls(
            user_id=user_id,
            session_id=session_id,
            created_at=now,
            updated_at=now,
        )

    # -------------------------------------------------------------------
    # Derived values
    # -------------------------------------------------------------------
    @property
    def subtotal(self):
        return sum(item.line_total for item in self.items)

    @property
    def item_count(self):
        return sum(item.quantity for item in self.items)

    @property
    def is_empty(self):
        return not self.items

    def get_item(self, product_id):
        """Return the cart line for a product, or None."""
        return next((i for i in self.items if str(i.product_id) == str(product_id)), None)

    # -------------------------------------------------------------------
    # Item management
    # -------------------------------------------------------------------
    def add_item(self, product, quantity=1):
        """Add a catalog product, merging with an existing line and clamping to stock."""
        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})
        if product.quantity < 1:
            raise ValidationError({"product_id": [f"{product.name} is out of stock"]})
        if self.store_id and str(self.store_id) != str(product.store_id):
            raise ValidationError(
                {"store_id": ["You can only order from one store at a time. Clear your cart first."]}
            )

        now = datetime.now(UTC)
        existing = self.get_item(product.id)

        if existing:
            wanted = existing.quantity + quantity
            existing.quantity = min(wanted, product.quantity)
            existing.unit_price = product.price
            existing.available_quantity = product.quantity
            line_quantity = existing.quantity
        else:
            wanted = quantity
            if self.is_empty:
                self.store_id = product.store_id
                self.store_name = product.store_name
                self.store_slug = product.store_slug
            line_quantity = min(quantity, product.quantity)
            self.add_items(
                CartItem(
                    product_id=product.id,
                    store_id=product.store_id,
                    name=product.name,
                    image=product.image,
                    unit_price=product.price,
                    quantity=line_quantity,
                    available_quantity=product.quantity,
                    added_at=now,
                )
            )

        self.updated_at = now

        self.raise_(
            CartItemAdded(
                cart_id=str(self.id),
                product_id=str(product.id),
                store_id=str(product.store_id),
                requested_quantity=quantity,
                quantity=line_quantity,
                clamped=line_quantity < wanted,
            )
        )

    def update_quantity(self, product_id, quantity, available=None):
        """Set a line's quantity, clamped to [1, available]. Zero or less removes the line.

        ``available`` refreshes the stock snapshot before clamping.
        """
        item = self.get_item(product_id)
        if item is None:
            raise ValidationError({"product_id": ["Item not found in cart"]})

        if quantity < 1:
            self.remove_item(product_id)
            return

        if available is not None:
            item.available_quantity = available
        ceiling = item.available_quantity if item.available_quantity is not None else quantity
        if ceiling < 1:
            raise ValidationError({"quantity": [f"{item.name} is out of stock"]})

        previous_quantity = item.quantity
        item.quantity = min(quantity, ceiling)
        self.updated_at = datetime.now(UTC)

        self.raise_(
            CartQuantityUpdated(
                cart_id=str(self.id),
                product_id=str(product_id),
                previous_quantity=previous_quantity,
                new_quantity=item.quantity,
                clamped=item.quantity < quantity,
            )
        )

    def remove_item(self, product_id):
        """Remove a line. Emptying the cart releases its store association."""
        item = self.get_item(product_id)
        if item is None:
            raise ValidationError({"product_id": ["Item not found in cart"]})

        self.remove_items(item)
        if self.is_empty:
            self._forget_store()
        self.updated_at = datetime.now(UTC)

        self.raise_(
            CartItemRemoved(
                cart_id=str(self.id),
                product_id=str(product_id),
            )
        )

    def clear(self):
        """Empty the cart and its store association."""
        for item in list(self.items):
            self.remove_items(item)
        self._forget_store()
        now = datetime.now(UTC)
        self.updated_at = now

        self.raise_(CartCleared(cart_id=str(self.id), cleared_at=now))

    def _forget_store(self):
        self.store_id = None
        self.store_name = None
        self.store_slug = None
