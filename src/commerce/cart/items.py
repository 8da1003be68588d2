"""Cart item management: commands and handler.

Stock checks here are advisory: they compare the quantity the cart would hold
against the product's current stock, but nothing is reserved until the order
is placed.
"""

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from commerce.cart.cart import Cart, ItemType
from commerce.customization.design import load_customization
from commerce.domain import commerce
from commerce.errors import InsufficientStockError, InvalidStateError, UnauthorizedError
from commerce.inventory.ledger import InventoryLedger

logger = structlog.get_logger(__name__)


@commerce.command(part_of="Cart")
class AddCartItem:
    user_id = Identifier(required=True)
    item_type = String(required=True, choices=ItemType)
    item_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)


@commerce.command(part_of="Cart")
class AddCustomizationToCart:
    """Put a customization in the cart with the quantity it was designed for."""

    user_id = Identifier(required=True)
    customization_id = Identifier(required=True)


@commerce.command(part_of="Cart")
class UpdateCartItemQuantity:
    user_id = Identifier(required=True)
    line_id = Identifier(required=True)
    quantity = Integer(required=True)  # <= 0 removes the line


@commerce.command(part_of="Cart")
class RemoveCartItem:
    user_id = Identifier(required=True)
    line_id = Identifier(required=True)


@commerce.command(part_of="Cart")
class OpenCart:
    """Fetch the user's cart, storing an empty one the first time."""

    user_id = Identifier(required=True)


@commerce.command(part_of="Cart")
class ClearCart:
    user_id = Identifier(required=True)


def _ensure_available(product, wanted):
    if (product.stock or 0) < wanted:
        raise InsufficientStockError(
            product_id=str(product.id),
            product_name=product.name,
            available=product.stock or 0,
            requested=wanted,
        )


@commerce.command_handler(part_of=Cart)
class ManageCartItemsHandler:
    @handle(AddCartItem)
    def add_cart_item(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.for_user(command.user_id)

        if command.item_type == ItemType.PRODUCT.value:
            product = InventoryLedger().product(command.item_id)
            _ensure_available(product, cart.quantity_of_product(product.id) + command.quantity)
            line = cart.add_product(
                product_id=product.id,
                name=product.name,
                unit_price=product.final_price,
                quantity=command.quantity,
                image_ref=product.primary_image,
            )
        else:
            customization = self._customization_for(command.user_id, command.item_id)
            line = cart.add_customization(
                customization_id=customization.id,
                name=customization.name,
                unit_price=customization.unit_price,
                quantity=command.quantity,
                image_ref=customization.primary_image,
            )

        repo.add(cart)
        return str(line.id)

    @handle(AddCustomizationToCart)
    def add_customization_to_cart(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.for_user(command.user_id)

        customization = self._customization_for(command.user_id, command.customization_id)
        line = cart.add_customization(
            customization_id=customization.id,
            name=customization.name,
            unit_price=customization.unit_price,
            quantity=customization.quantity,
            image_ref=customization.primary_image,
        )

        repo.add(cart)
        return str(line.id)

    @handle(UpdateCartItemQuantity)
    def update_cart_item_quantity(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.for_user(command.user_id)

        line = cart.line(command.line_id)
        if command.quantity > 0 and line.is_product():
            _ensure_available(InventoryLedger().product(line.item_ref), command.quantity)

        cart.update_quantity(command.line_id, command.quantity)
        repo.add(cart)

    @handle(RemoveCartItem)
    def remove_cart_item(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.for_user(command.user_id)
        cart.remove_line(command.line_id)
        repo.add(cart)

    @handle(OpenCart)
    def open_cart(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.for_user(command.user_id)
        if cart.state_.is_new:
            repo.add(cart)
            logger.info("Cart created", user_id=str(command.user_id))
        return cart

    @handle(ClearCart)
    def clear_cart(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.for_user(command.user_id)
        cart.clear()
        repo.add(cart)

    @staticmethod
    def _customization_for(user_id, customization_id):
        customization = load_customization(customization_id)
        if not customization.is_owned_by(user_id):
            raise UnauthorizedError("Not authorized to add this customization to cart")
        if customization.is_ordered:
            raise InvalidStateError("Customization has already been ordered")
        if not customization.unit_price:
            logger.warning("Customization has no price", customization_id=str(customization.id))
            raise ValidationError({"customization": ["Customization has not been priced"]})
        return customization
