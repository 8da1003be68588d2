"""Customization design: commands and handler."""

import json

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from commerce.customization.customization import Bottle, Customization, Fragrance, Label
from commerce.domain import commerce
from commerce.errors import NotFoundError


@commerce.command(part_of="Customization")
class DesignCustomization:
    user_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    fragrance_type = String(required=True, max_length=50)
    intensity = String(max_length=20, default="medium")
    notes = Text()  # JSON array of notes
    bottle_style = String(required=True, max_length=50)
    bottle_color = String(required=True, max_length=50)
    bottle_size = Integer(required=True)
    bottle_material = String(max_length=20, default="glass")
    label_text = String(max_length=100)
    label_font = String(max_length=20, default="sans-serif")
    label_color = String(max_length=50)
    packaging = String(max_length=20, default="standard")
    quantity = Integer(required=True, min_value=1, max_value=10)
    images = Text()  # JSON array of image URLs


@commerce.command(part_of="Customization")
class UpdateCustomization:
    customization_id = Identifier(required=True)
    user_id = Identifier(required=True)
    role = String(max_length=20, default="user")
    name = String(max_length=255)
    fragrance_type = String(max_length=50)
    intensity = String(max_length=20)
    bottle_style = String(max_length=50)
    bottle_color = String(max_length=50)
    bottle_size = Integer()
    bottle_material = String(max_length=20)
    label_text = String(max_length=100)
    label_font = String(max_length=20)
    label_color = String(max_length=50)
    packaging = String(max_length=20)
    quantity = Integer(min_value=1, max_value=10)


@commerce.command(part_of="Customization")
class DeleteCustomization:
    customization_id = Identifier(required=True)
    user_id = Identifier(required=True)
    role = String(max_length=20, default="user")


def load_customization(customization_id) -> Customization:
    try:
        return current_domain.repository_for(Customization).get(str(customization_id))
    except ObjectNotFoundError:
        raise NotFoundError(f"Customization not found with id of {customization_id}") from None


def _merged(vo, vo_cls, **changes):
    """Copy of ``vo`` with the non-None ``changes`` applied."""
    values = vo.to_dict() if vo else {}
    values.update({key: value for key, value in changes.items() if value is not None})
    return vo_cls(**values)


@commerce.command_handler(part_of=Customization)
class DesignCustomizationHandler:
    @handle(DesignCustomization)
    def design_customization(self, command):
        customization = Customization.design(
            user_id=command.user_id,
            name=command.name,
            fragrance=Fragrance(
                fragrance_type=command.fragrance_type,
                intensity=command.intensity or "medium",
                notes=command.notes or json.dumps([]),
            ),
            bottle=Bottle(
                style=command.bottle_style,
                color=command.bottle_color,
                size=command.bottle_size,
                material=command.bottle_material or "glass",
            ),
            label=Label(
                text=command.label_text,
                font=command.label_font or "sans-serif",
                color=command.label_color,
            ),
            packaging=command.packaging or "standard",
            quantity=command.quantity,
            images=json.loads(command.images) if command.images else [],
        )
        current_domain.repository_for(Customization).add(customization)
        return str(customization.id)

    @handle(UpdateCustomization)
    def update_customization(self, command):
        customization = load_customization(command.customization_id)
        customization.assert_accessible_by(command.user_id, command.role, action="update")

        fragrance = bottle = label = None
        if command.fragrance_type or command.intensity:
            fragrance = _merged(
                customization.fragrance,
                Fragrance,
                fragrance_type=command.fragrance_type,
                intensity=command.intensity,
            )
        if command.bottle_style or command.bottle_color or command.bottle_size or command.bottle_material:
            bottle = _merged(
                customization.bottle,
                Bottle,
                style=command.bottle_style,
                color=command.bottle_color,
                size=command.bottle_size,
                material=command.bottle_material,
            )
        if command.label_text is not None or command.label_font or command.label_color:
            label = _merged(
                customization.label,
                Label,
                text=command.label_text,
                font=command.label_font,
                color=command.label_color,
            )

        customization.revise(
            name=command.name,
            fragrance=fragrance,
            bottle=bottle,
            label=label,
            packaging=command.packaging,
            quantity=command.quantity,
        )
        current_domain.repository_for(Customization).add(customization)
        return str(customization.id)

    @handle(DeleteCustomization)
    def delete_customization(self, command):
        customization = load_customization(command.customization_id)
        customization.assert_accessible_by(command.user_id, command.role, action="delete")
        customization.assert_deletable()
        current_domain.repository_for(Customization)._dao.delete(customization)
