"""Domain events for the Product aggregate's stock ledger."""

from protean.fields import DateTime, Float, Identifier, Integer, String

from commerce.domain import commerce


@commerce.event(part_of="Product")
class ProductRegistered:
    """A catalog product was made available for sale."""

    __version__ = 1

    product_id = Identifier(required=True)
    name = String(required=True)
    price = Float(required=True)
    initial_stock = Integer(required=True)
    registered_at = DateTime(required=True)


@commerce.event(part_of="Product")
class StockReserved:
    """Stock was taken for an order line."""

    __version__ = 1

    product_id = Identifier(required=True)
    order_id = Identifier()
    quantity = Integer(required=True)
    previous_stock = Integer(required=True)
    new_stock = Integer(required=True)
    reserved_at = DateTime(required=True)


@commerce.event(part_of="Product")
class StockReleased:
    """Stock held by a cancelled order went back on the shelf."""

    __version__ = 1

    product_id = Identifier(required=True)
    order_id = Identifier()
    quantity = Integer(required=True)
    previous_stock = Integer(required=True)
    new_stock = Integer(required=True)
    released_at = DateTime(required=True)


@commerce.event(part_of="Product")
class StockReplenished:
    """New units were received into the catalog stock."""

    __version__ = 1

    product_id = Identifier(required=True)
    quantity = Integer(required=True)
    new_stock = Integer(required=True)
    replenished_at = DateTime(required=True)
