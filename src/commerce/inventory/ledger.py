"""Inventory ledger: reserve and release stock for order lines.

The ledger never persists on its own: it loads products, applies the stock
movement on the aggregate (check and decrement are one step there) and hands
the touched products back so the calling command handler registers them in
the same unit of work as the order. Saving goes through the aggregate's
optimistic version, so a product changed by a concurrent order since it was
loaded fails the whole commit with ``ExpectedVersionError`` instead of
over-selling.
"""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from commerce.errors import NotFoundError
from commerce.inventory.product import Product


class InventoryLedger:
    def __init__(self, repository=None):
        self._repo = repository or current_domain.repository_for(Product)

    def product(self, product_id) -> Product:
        try:
            return self._repo.get(str(product_id))
        except ObjectNotFoundError:
            raise NotFoundError(f"Product not found with id of {product_id}") from None

    def available(self, product_id) -> int:
        """Current stock. A hint for the cart; nothing is held."""
        return self.product(product_id).stock or 0

    def reserve(self, product_id, quantity, order_id=None) -> Product:
        product = self.product(product_id)
        product.reserve(quantity, order_id=order_id)
        return product

    def reserve_all(self, requests, order_id=None) -> list[Product]:
        """Reserve every ``(product_id, quantity)`` pair or none of them.

        Reservations are applied in request order on loaded aggregates and
        the first shortfall raises ``InsufficientStockError`` before anything
        has been handed out for persistence.
        """
        touched: dict[str, Product] = {}
        for product_id, quantity in requests:
            key = str(product_id)
            product = touched.get(key) or self.product(key)
            product.reserve(quantity, order_id=order_id)
            touched[key] = product
        return list(touched.values())

    def release(self, product_id, quantity, order_id=None) -> Product:
        product = self.product(product_id)
        product.release(quantity, order_id=order_id)
        return product

    def release_all(self, requests, order_id=None) -> list[Product]:
        touched: dict[str, Product] = {}
        for product_id, quantity in requests:
            key = str(product_id)
            product = touched.get(key) or self.product(key)
            product.release(quantity, order_id=order_id)
            touched[key] = product
        return list(touched.values())

    def persist(self, products) -> None:
        for product in products:
            self._repo.add(product)
