"""Domain events for the Cart aggregate."""

from protean.fields import Float, Identifier, Integer, String

from commerce.domain import commerce


@commerce.event(part_of="Cart")
class CartLineAdded:
    """A product or customization was put in the cart."""

    __version__ = 1

    user_id = Identifier(required=True)
    line_id = Identifier(required=True)
    item_type = String(required=True)
    item_ref = Identifier(required=True)
    quantity = Integer(required=True)
    total_price = Float(required=True)


@commerce.event(part_of="Cart")
class CartLineQuantityChanged:
    __version__ = 1

    user_id = Identifier(required=True)
    line_id = Identifier(required=True)
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)
    total_price = Float(required=True)


@commerce.event(part_of="Cart")
class CartLineRemoved:
    __version__ = 1

    user_id = Identifier(required=True)
    line_id = Identifier(required=True)
    total_price = Float(required=True)


@commerce.event(part_of="Cart")
class CartCleared:
    __version__ = 1

    user_id = Identifier(required=True)
    lines_removed = Integer(required=True)
