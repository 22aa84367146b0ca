"""In-memory product catalog for development and testing."""

from dataclasses import replace

from storefront.catalog.port import Product, ProductCatalog, ProductNotFound


class InMemoryCatalog(ProductCatalog):
    """Dictionary-backed catalog that can be seeded at runtime."""

    def __init__(self, products: list[Product] | None = None) -> None:
        self._products: dict[str, Product] = {}
        for product in products or []:
            self.add(product)

    def add(self, product: Product) -> None:
        self._products[str(product.id)] = product

    def set_stock(self, product_id: str, quantity: int) -> None:
        self._products[str(product_id)] = replace(self.get_product(product_id), quantity=quantity)

    def get_product(self, product_id: str) -> Product:
        try:
            return self._products[str(product_id)]
        except KeyError:
            raise ProductNotFound(str(product_id)) from None
