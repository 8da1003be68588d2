"""Product aggregate: the catalog entry whose stock count the engine owns.

Catalog management lives elsewhere; this aggregate keeps just what checkout
needs (name, price, first image) plus the available quantity. Stock only moves
through ``reserve`` (order placement), ``release`` (order cancellation) and
``restock`` (goods received), and it can never drop below zero.
"""

import json
from datetime import UTC, datetime

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, Integer, String, Text

from commerce.domain import commerce
from commerce.errors import InsufficientStockError
from commerce.inventory.events import (
    ProductRegistered,
    StockReleased,
    StockReplenished,
    StockReserved,
)


@commerce.aggregate
class Product:
    name = String(required=True, max_length=255)
    price = Float(required=True, min_value=0.0)
    discount_percentage = Float(default=0.0, min_value=0.0, max_value=100.0)
    images = Text()  # JSON array of image URLs
    stock = Integer(default=0)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def stock_must_not_be_negative(self):
        if self.stock is not None and self.stock < 0:
            raise ValidationError({"stock": ["Stock cannot be negative"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def register(cls, name, price, stock=0, discount_percentage=0.0, images=None):
        now = datetime.now(UTC)
        product = cls(
            name=name,
            price=price,
            discount_percentage=discount_percentage or 0.0,
            images=json.dumps(list(images or [])),
            stock=stock,
            created_at=now,
            updated_at=now,
        )
        product.raise_(
            ProductRegistered(
                product_id=str(product.id),
                name=name,
                price=price,
                initial_stock=stock,
                registered_at=now,
            )
        )
        return product

    # -------------------------------------------------------------------
    # Catalog facts read by the cart
    # -------------------------------------------------------------------
    @property
    def final_price(self) -> float:
        discount = self.discount_percentage or 0.0
        return round(self.price * (1 - discount / 100), 2)

    @property
    def primary_image(self) -> str:
        images = json.loads(self.images) if self.images else []
        return images[0] if images else ""

    # -------------------------------------------------------------------
    # Stock movements
    # -------------------------------------------------------------------
    def reserve(self, quantity, order_id=None):
        """Take ``quantity`` units, or refuse without touching the count."""
        if quantity <= 0:
            raise ValidationError({"quantity": ["Quantity must be positive"]})

        previous = self.stock or 0
        if previous < quantity:
            raise InsufficientStockError(
                product_id=str(self.id),
                product_name=self.name,
                available=previous,
                requested=quantity,
            )

        now = datetime.now(UTC)
        self.stock = previous - quantity
        self.updated_at = now

        self.raise_(
            StockReserved(
                product_id=str(self.id),
                order_id=str(order_id) if order_id else None,
                quantity=quantity,
                previous_stock=previous,
                new_stock=self.stock,
                reserved_at=now,
            )
        )

    def release(self, quantity, order_id=None):
        """Put ``quantity`` units back. Always succeeds; no ceiling is enforced."""
        if quantity <= 0:
            raise ValidationError({"quantity": ["Quantity must be positive"]})

        previous = self.stock or 0
        now = datetime.now(UTC)
        self.stock = previous + quantity
        self.updated_at = now

        self.raise_(
            StockReleased(
                product_id=str(self.id),
                order_id=str(order_id) if order_id else None,
                quantity=quantity,
                previous_stock=previous,
                new_stock=self.stock,
                released_at=now,
            )
        )

    def restock(self, quantity):
        if quantity <= 0:
            raise ValidationError({"quantity": ["Quantity must be positive"]})

        now = datetime.now(UTC)
        self.stock = (self.stock or 0) + quantity
        self.updated_at = now

        self.raise_(
            StockReplenished(
                product_id=str(self.id),
                quantity=quantity,
                new_stock=self.stock,
                replenished_at=now,
            )
        )
