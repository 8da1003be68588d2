"""Pricing calculator for customized fragrances.

Pure functions over an immutable ``PriceConfig``. Bottle size scales the base,
bottle, intensity and material components; packaging and label charges are
flat per unit.
"""

from dataclasses import dataclass, field
from types import MappingProxyType

from protean.exceptions import ValidationError

MIN_QUANTITY = 1
MAX_QUANTITY = 10


def _frozen(mapping):
    return MappingProxyType(dict(mapping))


@dataclass(frozen=True)
class PriceConfig:
    """Price tables, in the store currency's major unit."""

    base: MappingProxyType = field(
        default_factory=lambda: _frozen(
            {"floral": 50, "woody": 60, "fresh": 45, "oriental": 70, "citrus": 40, "spicy": 65}
        )
    )
    bottle: MappingProxyType = field(
        default_factory=lambda: _frozen({"classic": 0, "modern": 10, "vintage": 15, "luxury": 30, "minimalist": 5})
    )
    intensity: MappingProxyType = field(default_factory=lambda: _frozen({"light": 0, "medium": 5, "strong": 10}))
    size: MappingProxyType = field(default_factory=lambda: _frozen({30: 1.0, 50: 1.5, 100: 2.5, 200: 4.0}))
    material: MappingProxyType = field(default_factory=lambda: _frozen({"glass": 0, "crystal": 20, "plastic": -5}))
    packaging: MappingProxyType = field(default_factory=lambda: _frozen({"standard": 0, "premium": 15, "gift": 25}))
    label: float = 5.0


DEFAULT_PRICE_CONFIG = PriceConfig()


@dataclass(frozen=True)
class PriceQuote:
    base_price: float
    bottle_upgrade: float
    fragrance_upgrade: float
    material_upgrade: float
    packaging_upgrade: float
    label_customization: float
    unit_price: float
    total_price: float
    quantity: int

    def breakdown(self) -> dict:
        return {
            "base_price": self.base_price,
            "bottle_upgrade": self.bottle_upgrade,
            "fragrance_upgrade": self.fragrance_upgrade,
            "material_upgrade": self.material_upgrade,
            "packaging_upgrade": self.packaging_upgrade,
            "label_customization": self.label_customization,
        }

    def to_dict(self) -> dict:
        return {
            "price_breakdown": self.breakdown(),
            "unit_price": self.unit_price,
            "total_price": self.total_price,
            "quantity": self.quantity,
        }


def _lookup(table, key, field_name):
    try:
        return table[key]
    except KeyError:
        allowed = ", ".join(str(k) for k in table)
        raise ValidationError({field_name: [f"Unknown {field_name} '{key}'. Expected one of: {allowed}"]}) from None


class PricingCalculator:
    def __init__(self, config: PriceConfig | None = None) -> None:
        self.config = config or DEFAULT_PRICE_CONFIG

    def price(
        self,
        fragrance_type: str,
        intensity: str,
        bottle_style: str,
        bottle_material: str,
        bottle_size: int,
        packaging: str = "standard",
        has_label_text: bool = False,
        quantity: int = 1,
    ) -> PriceQuote:
        if quantity is None or not MIN_QUANTITY <= int(quantity) <= MAX_QUANTITY:
            raise ValidationError(
                {"quantity": [f"Quantity must be between {MIN_QUANTITY} and {MAX_QUANTITY}"]}
            )
        quantity = int(quantity)

        config = self.config
        multiplier = _lookup(config.size, int(bottle_size), "bottle_size")

        base_price = round(_lookup(config.base, fragrance_type, "fragrance_type") * multiplier, 2)
        bottle_upgrade = round(_lookup(config.bottle, bottle_style, "bottle_style") * multiplier, 2)
        fragrance_upgrade = round(_lookup(config.intensity, intensity, "intensity") * multiplier, 2)
        material_upgrade = round(_lookup(config.material, bottle_material, "bottle_material") * multiplier, 2)
        packaging_upgrade = round(float(_lookup(config.packaging, packaging, "packaging")), 2)
        label_customization = round(float(config.label), 2) if has_label_text else 0.0

        unit_price = round(
            base_price
            + bottle_upgrade
            + fragrance_upgrade
            + material_upgrade
            + packaging_upgrade
            + label_customization,
            2,
        )

        return PriceQuote(
            base_price=base_price,
            bottle_upgrade=bottle_upgrade,
            fragrance_upgrade=fragrance_upgrade,
            material_upgrade=material_upgrade,
            packaging_upgrade=packaging_upgrade,
            label_customization=label_customization,
            unit_price=unit_price,
            total_price=round(unit_price * quantity, 2),
            quantity=quantity,
        )
