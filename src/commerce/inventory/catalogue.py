"""Catalog seeding: register products and receive stock."""

import json

from protean import handle
from protean.fields import Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from commerce.domain import commerce
from commerce.inventory.ledger import InventoryLedger
from commerce.inventory.product import Product


@commerce.command(part_of="Product")
class RegisterProduct:
    name = String(required=True, max_length=255)
    price = Float(required=True, min_value=0.0)
    discount_percentage = Float(default=0.0)
    images = Text()  # JSON: list of image URLs
    stock = Integer(default=0, min_value=0)


@commerce.command(part_of="Product")
class RestockProduct:
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)


@commerce.command_handler(part_of=Product)
class CatalogueHandler:
    @handle(RegisterProduct)
    def register_product(self, command):
        images = json.loads(command.images) if isinstance(command.images, str) else command.images
        product = Product.register(
            name=command.name,
            price=command.price,
            stock=command.stock or 0,
            discount_percentage=command.discount_percentage or 0.0,
            images=images,
        )
        current_domain.repository_for(Product).add(product)
        return str(product.id)

    @handle(RestockProduct)
    def restock_product(self, command):
        ledger = InventoryLedger()
        product = ledger.product(command.product_id)
        product.restock(command.quantity)
        ledger.persist([product])
        return product.stock
