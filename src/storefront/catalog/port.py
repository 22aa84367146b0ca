"""Product catalog port (abstract interface).

The storefront never owns product records; it reads them from the catalog to
snapshot prices into carts and orders and to clamp quantities to stock.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


class ProductNotFound(Exception):
    """Raised when the catalog has no product with the requested id."""

    def __init__(self, product_id: str) -> None:
        super().__init__(f"Product {product_id} not found")
        self.product_id = product_id


@dataclass(frozen=True)
class Product:
    """A sellable product as published by a store. ``price`` is in minor units."""

    id: str
    store_id: str
    name: str
    price: int
    quantity: int
    store_name: str | None = None
    store_slug: str | None = None
    image: str | None = None


class ProductCatalog(ABC):
    """Abstract product catalog interface."""

    @abstractmethod
    def get_product(self, product_id: str) -> Product:
        """Return the product, or raise ProductNotFound."""
        ...
