"""Cart aggregate (CQRS): one mutable cart per user.

The cart is keyed by the user's id, so a user can never have two carts. Each
line is a tagged variant: ``item_type`` says whether ``item_ref`` points at a
catalog product or at a customization. Totals are derived and recomputed by
the aggregate after every mutation; nothing else writes them.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String

from commerce.cart.events import CartCleared, CartLineAdded, CartLineQuantityChanged, CartLineRemoved
from commerce.domain import commerce
from commerce.errors import NotFoundError


class ItemType(Enum):
    PRODUCT = "product"
    CUSTOMIZATION = "customization"


@commerce.entity(part_of="Cart")
class CartLine:
    item_type = String(required=True, choices=ItemType)
    item_ref = Identifier(required=True)
    name = String(required=True, max_length=255)
    unit_price = Float(required=True, min_value=0.0)
    quantity = Integer(required=True, min_value=1)
    image_ref = String(max_length=1000, default="")
    added_at = DateTime()

    @property
    def line_total(self) -> float:
        return round(self.unit_price * self.quantity, 2)

    def is_product(self, product_id=None) -> bool:
        if self.item_type != ItemType.PRODUCT.value:
            return False
        return product_id is None or str(self.item_ref) == str(product_id)


@commerce.aggregate
class Cart:
    user_id = Identifier(identifier=True)
    lines = HasMany(CartLine)
    total_items = Integer(default=0)
    total_price = Float(default=0.0)
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def line(self, line_id) -> CartLine:
        line = next((ln for ln in self.lines if str(ln.id) == str(line_id)), None)
        if line is None:
            raise NotFoundError("Item not found in cart")
        return line

    def product_line(self, product_id) -> CartLine | None:
        return next((ln for ln in self.lines if ln.is_product(product_id)), None)

    def quantity_of_product(self, product_id) -> int:
        line = self.product_line(product_id)
        return line.quantity if line else 0

    @property
    def is_empty(self) -> bool:
        return not self.lines

    # -------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------
    def add_product(self, product_id, name, unit_price, quantity, image_ref=""):
        """Add a catalog product, merging into an existing line for it."""
        if quantity is None or quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})

        now = datetime.now(UTC)
        existing = self.product_line(product_id)
        if existing:
            existing.quantity += quantity
            line = existing
        else:
            line = CartLine(
                item_type=ItemType.PRODUCT.value,
                item_ref=str(product_id),
                name=name,
                unit_price=unit_price,
                quantity=quantity,
                image_ref=image_ref or "",
                added_at=now,
            )
            self.add_lines(line)

        self._touch(now)
        self.raise_(
            CartLineAdded(
                user_id=str(self.user_id),
                line_id=str(line.id),
                item_type=ItemType.PRODUCT.value,
                item_ref=str(product_id),
                quantity=quantity,
                total_price=self.total_price,
            )
        )
        return line

    def add_customization(self, customization_id, name, unit_price, quantity, image_ref=""):
        """Add a customization as its own line. Customization lines never merge."""
        if quantity is None or quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})

        now = datetime.now(UTC)
        line = CartLine(
            item_type=ItemType.CUSTOMIZATION.value,
            item_ref=str(customization_id),
            name=name,
            unit_price=unit_price,
            quantity=quantity,
            image_ref=image_ref or "",
            added_at=now,
        )
        self.add_lines(line)

        self._touch(now)
        self.raise_(
            CartLineAdded(
                user_id=str(self.user_id),
                line_id=str(line.id),
                item_type=ItemType.CUSTOMIZATION.value,
                item_ref=str(customization_id),
                quantity=quantity,
                total_price=self.total_price,
            )
        )
        return line

    def update_quantity(self, line_id, quantity):
        """Set a line's quantity. Zero or less removes the line."""
        line = self.line(line_id)
        if quantity <= 0:
            self.remove_line(line_id)
            return

        previous = line.quantity
        line.quantity = quantity
        self._touch(datetime.now(UTC))

        self.raise_(
            CartLineQuantityChanged(
                user_id=str(self.user_id),
                line_id=str(line_id),
                previous_quantity=previous,
                new_quantity=quantity,
                total_price=self.total_price,
            )
        )

    def remove_line(self, line_id):
        line = self.line(line_id)
        self.remove_lines(line)
        self._touch(datetime.now(UTC))

        self.raise_(
            CartLineRemoved(
                user_id=str(self.user_id),
                line_id=str(line_id),
                total_price=self.total_price,
            )
        )

    def clear(self):
        removed = len(self.lines)
        for line in list(self.lines):
            self.remove_lines(line)
        self._touch(datetime.now(UTC))

        self.raise_(CartCleared(user_id=str(self.user_id), lines_removed=removed))

    # -------------------------------------------------------------------
    # Totals
    # -------------------------------------------------------------------
    def _touch(self, now):
        self.total_items = sum(ln.quantity for ln in self.lines)
        self.total_price = round(sum(ln.unit_price * ln.quantity for ln in self.lines), 2)
        self.updated_at = now


@commerce.repository(part_of=Cart)
class CartRepository:
    def for_user(self, user_id) -> Cart:
        """The user's cart, or a new empty one that is not stored yet."""
        try:
            return self.get(str(user_id))
        except ObjectNotFoundError:
            return Cart(user_id=str(user_id), updated_at=datetime.now(UTC))
