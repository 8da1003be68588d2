"""Customization aggregate: a customer's bespoke fragrance design.

A design is priced by the ``PricingCalculator`` whenever it is created or
revised; the aggregate only stores the resulting breakdown. Status moves
forward only (draft, completed, ordered). Once ordered, a design is frozen:
it can no longer be edited, deleted or put in a cart again.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, Identifier, Integer, String, Text, ValueObject

from commerce.customization.events import (
    CustomizationDesigned,
    CustomizationOrdered,
    CustomizationRevised,
)
from commerce.customization.pricing import MAX_QUANTITY, MIN_QUANTITY, PricingCalculator
from commerce.domain import commerce
from commerce.errors import InvalidStateError, UnauthorizedError


class CustomizationStatus(Enum):
    DRAFT = "draft"
    COMPLETED = "completed"
    ORDERED = "ordered"


_STATUS_RANK = {
    CustomizationStatus.DRAFT: 0,
    CustomizationStatus.COMPLETED: 1,
    CustomizationStatus.ORDERED: 2,
}


class LabelFont(Enum):
    SERIF = "serif"
    SANS_SERIF = "sans-serif"
    SCRIPT = "script"
    MODERN = "modern"


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@commerce.value_object(part_of="Customization")
class Fragrance:
    fragrance_type = String(required=True, max_length=50)
    intensity = String(max_length=20, default="medium")
    notes = Text()  # JSON array of specific notes


@commerce.value_object(part_of="Customization")
class Bottle:
    style = String(required=True, max_length=50)
    color = String(required=True, max_length=50)
    size = Integer(required=True)  # millilitres
    material = String(max_length=20, default="glass")


@commerce.value_object(part_of="Customization")
class Label:
    text = String(max_length=100)
    font = String(choices=LabelFont, default=LabelFont.SANS_SERIF.value)
    color = String(max_length=50)


@commerce.value_object(part_of="Customization")
class PriceBreakdown:
    """Per-unit price components. Their sum is the unit price."""

    base_price = Float(default=0.0)
    bottle_upgrade = Float(default=0.0)
    fragrance_upgrade = Float(default=0.0)
    material_upgrade = Float(default=0.0)
    packaging_upgrade = Float(default=0.0)
    label_customization = Float(default=0.0)

    @property
    def unit_price(self) -> float:
        return round(
            (self.base_price or 0.0)
            + (self.bottle_upgrade or 0.0)
            + (self.fragrance_upgrade or 0.0)
            + (self.material_upgrade or 0.0)
            + (self.packaging_upgrade or 0.0)
            + (self.label_customization or 0.0),
            2,
        )


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@commerce.aggregate
class Customization:
    user_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    fragrance = ValueObject(Fragrance)
    bottle = ValueObject(Bottle)
    label = ValueObject(Label)
    packaging = String(max_length=20, default="standard")
    quantity = Integer(required=True, min_value=MIN_QUANTITY, max_value=MAX_QUANTITY)
    price_breakdown = ValueObject(PriceBreakdown)
    unit_price = Float(default=0.0)
    total_price = Float(default=0.0)
    images = Text()  # JSON array of image URLs
    status = String(choices=CustomizationStatus, default=CustomizationStatus.DRAFT.value)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def total_must_match_unit_price_and_quantity(self):
        if self.unit_price is None or self.quantity is None:
            return
        if abs(round(self.unit_price * self.quantity, 2) - (self.total_price or 0.0)) > 0.005:
            raise ValidationError({"total_price": ["Total price must equal unit price times quantity"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def design(
        cls,
        user_id,
        name,
        fragrance,
        bottle,
        label=None,
        packaging="standard",
        quantity=1,
        images=None,
        calculator=None,
    ):
        """Create a priced design in ``completed`` status."""
        now = datetime.now(UTC)
        customization = cls(
            user_id=user_id,
            name=name,
            fragrance=fragrance,
            bottle=bottle,
            label=label or Label(),
            packaging=packaging or "standard",
            quantity=quantity,
            images=json.dumps(list(images or [])),
            status=CustomizationStatus.DRAFT.value,
            created_at=now,
            updated_at=now,
        )
        with atomic_change(customization):
            customization._reprice(calculator or PricingCalculator())
            customization._advance_to(CustomizationStatus.COMPLETED)

        customization.raise_(
            CustomizationDesigned(
                customization_id=str(customization.id),
                user_id=str(user_id),
                name=name,
                quantity=customization.quantity,
                unit_price=customization.unit_price,
                total_price=customization.total_price,
                designed_at=now,
            )
        )
        return customization

    # -------------------------------------------------------------------
    # Access
    # -------------------------------------------------------------------
    def is_owned_by(self, user_id) -> bool:
        return str(self.user_id) == str(user_id)

    def assert_accessible_by(self, user_id, role=None, action="access"):
        if not self.is_owned_by(user_id) and role != "admin":
            raise UnauthorizedError(f"Not authorized to {action} this customization")

    @property
    def is_ordered(self) -> bool:
        return self.status == CustomizationStatus.ORDERED.value

    @property
    def primary_image(self) -> str:
        images = json.loads(self.images) if self.images else []
        return images[0] if images else ""

    def _assert_editable(self):
        if self.is_ordered:
            raise InvalidStateError("Customization has already been ordered and can no longer change")

    # -------------------------------------------------------------------
    # Revisions
    # -------------------------------------------------------------------
    def revise(
        self,
        name=None,
        fragrance=None,
        bottle=None,
        label=None,
        packaging=None,
        quantity=None,
        calculator=None,
    ):
        self._assert_editable()
        now = datetime.now(UTC)

        with atomic_change(self):
            if name is not None:
                self.name = name
            if fragrance is not None:
                self.fragrance = fragrance
            if bottle is not None:
                self.bottle = bottle
            if label is not None:
                self.label = label
            if packaging is not None:
                self.packaging = packaging
            if quantity is not None:
                self.quantity = quantity

            self._reprice(calculator or PricingCalculator())
            self.updated_at = now

        self.raise_(
            CustomizationRevised(
                customization_id=str(self.id),
                quantity=self.quantity,
                unit_price=self.unit_price,
                total_price=self.total_price,
                revised_at=now,
            )
        )

    def assert_deletable(self):
        self._assert_editable()

    def mark_ordered(self, order_id=None):
        if self.is_ordered:
            raise InvalidStateError("Customization has already been ordered")

        now = datetime.now(UTC)
        self._advance_to(CustomizationStatus.ORDERED)
        self.updated_at = now

        self.raise_(
            CustomizationOrdered(
                customization_id=str(self.id),
                order_id=str(order_id) if order_id else None,
                ordered_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------
    def _advance_to(self, target):
        current = CustomizationStatus(self.status)
        if _STATUS_RANK[target] < _STATUS_RANK[current]:
            raise InvalidStateError(f"Customization cannot move from {current.value} back to {target.value}")
        self.status = target.value

    def _reprice(self, calculator):
        quote = calculator.price(
            fragrance_type=self.fragrance.fragrance_type,
            intensity=self.fragrance.intensity or "medium",
            bottle_style=self.bottle.style,
            bottle_material=self.bottle.material or "glass",
            bottle_size=self.bottle.size,
            packaging=self.packaging or "standard",
            has_label_text=bool(self.label and self.label.text),
            quantity=self.quantity,
        )
        self.price_breakdown = PriceBreakdown(**quote.breakdown())
        self.unit_price = quote.unit_price
        self.total_price = quote.total_price


@commerce.repository(part_of=Customization)
class CustomizationRepository:
    def for_user(self, user_id) -> list[Customization]:
        """A user's designs, newest first."""
        designs = self._dao.query.filter(user_id=str(user_id)).all().items
        return sorted(designs, key=lambda c: c.created_at, reverse=True)
