"""Domain events for the Customization aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer, String

from commerce.domain import commerce


@commerce.event(part_of="Customization")
class CustomizationDesigned:
    """A customer saved a new priced fragrance design."""

    __version__ = 1

    customization_id = Identifier(required=True)
    user_id = Identifier(required=True)
    name = String(required=True)
    quantity = Integer(required=True)
    unit_price = Float(required=True)
    total_price = Float(required=True)
    designed_at = DateTime(required=True)


@commerce.event(part_of="Customization")
class CustomizationRevised:
    """A design was changed and re-priced."""

    __version__ = 1

    customization_id = Identifier(required=True)
    quantity = Integer(required=True)
    unit_price = Float(required=True)
    total_price = Float(required=True)
    revised_at = DateTime(required=True)


@commerce.event(part_of="Customization")
class CustomizationOrdered:
    """A design was bought as part of an order and is now frozen."""

    __version__ = 1

    customization_id = Identifier(required=True)
    order_id = Identifier()
    ordered_at = DateTime(required=True)
