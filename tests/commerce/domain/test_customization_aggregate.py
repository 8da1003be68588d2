"""Tests for the Customization aggregate: pricing, status and editability."""

import pytest

from commerce.customization.customization import (
    Bottle,
    Customization,
    CustomizationStatus,
    Fragrance,
    Label,
)
from commerce.customization.events import CustomizationDesigned, CustomizationOrdered, CustomizationRevised
from commerce.errors import InvalidStateError, UnauthorizedError


def _design(**overrides):
    params = {
        "user_id": "user-001",
        "name": "Evening Bloom",
        "fragrance": Fragrance(fragrance_type="floral", intensity="medium"),
        "bottle": Bottle(style="luxury", color="gold", size=50, material="glass"),
        "label": Label(text="For Amina"),
        "packaging": "gift",
        "quantity": 2,
        "images": ["bloom.png"],
    }
    params.update(overrides)
    return Customization.design(**params)


class TestDesign:
    def test_design_is_priced(self):
        customization = _design()
        assert customization.unit_price == 157.5
        assert customization.total_price == 315.0
        assert customization.price_breakdown.base_price == 75.0
        assert customization.price_breakdown.unit_price == 157.5

    def test_design_is_completed(self):
        assert _design().status == CustomizationStatus.COMPLETED.value

    def test_design_raises_event(self):
        event = _design()._events[-1]
        assert isinstance(event, CustomizationDesigned)
        assert event.total_price == 315.0

    def test_primary_image(self):
        assert _design().primary_image == "bloom.png"


class TestRevise:
    def test_revise_reprices(self):
        customization = _design()
        customization.revise(quantity=3, packaging="standard")

        assert customization.unit_price == 132.5
        assert customization.total_price == 397.5
        assert isinstance(customization._events[-1], CustomizationRevised)

    def test_removing_label_text_drops_label_charge(self):
        customization = _design()
        customization.revise(label=Label(text=None))
        assert customization.price_breakdown.label_customization == 0.0

    def test_ordered_design_is_frozen(self):
        customization = _design()
        customization.mark_ordered(order_id="ord-1")

        with pytest.raises(InvalidStateError):
            customization.revise(name="Another")
        with pytest.raises(InvalidStateError):
            customization.assert_deletable()


class TestStatus:
    def test_mark_ordered(self):
        customization = _design()
        customization.mark_ordered(order_id="ord-1")

        assert customization.is_ordered
        event = customization._events[-1]
        assert isinstance(event, CustomizationOrdered)
        assert event.order_id == "ord-1"

    def test_cannot_order_twice(self):
        customization = _design()
        customization.mark_ordered()
        with pytest.raises(InvalidStateError):
            customization.mark_ordered()

    def test_status_never_moves_backwards(self):
        customization = _design()
        customization.mark_ordered()
        with pytest.raises(InvalidStateError):
            customization._advance_to(CustomizationStatus.COMPLETED)


class TestAccess:
    def test_owner_and_admin(self):
        customization = _design()
        customization.assert_accessible_by("user-001")
        customization.assert_accessible_by("admin-1", role="admin")

    def test_stranger_rejected(self):
        with pytest.raises(UnauthorizedError):
            _design().assert_accessible_by("user-999", action="update")
