"""Order aggregate (CQRS): the immutable record of a checkout.

Line items and prices are snapshotted from the cart when the order is placed
and never change afterwards. What does change is the fulfilment status and
the payment fields, both through explicit transition tables:

    processing → confirmed, shipped
    confirmed  → shipped
    shipped    → delivered
    delivered, cancelled: terminal

Cancellation is its own operation (``cancel``), allowed from processing or
confirmed only. Payment transitions are owned by
``commerce.payment.state_machine``; reaching ``delivered`` completes the
payment through that module's side-effect table.
"""

import json
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, ValueObject

from commerce.cart.cart import ItemType
from commerce.domain import commerce
from commerce.errors import InvalidStateError, UnauthorizedError
from commerce.order.events import (
    OrderCancelled,
    OrderPlaced,
    OrderStatusChanged,
    PaymentCompleted,
    PaymentFailed,
    PaymentInitiated,
)
from commerce.payment.state_machine import (
    ORDER_STATUS_PAYMENT_EFFECTS,
    PaymentInfo,
    PaymentMethod,
    PaymentStatus,
    assert_can_transition,
    is_card,
)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PROCESSING = "processing"
    CONFIRMED = "confirmed"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


_VALID_TRANSITIONS = {
    OrderStatus.PROCESSING: {OrderStatus.CONFIRMED, OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
}

# States from which cancellation is allowed
_CANCELLABLE_STATES = {OrderStatus.PROCESSING, OrderStatus.CONFIRMED}


# ---------------------------------------------------------------------------
# Charges
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class OrderCharges:
    items_price: float
    tax_price: float
    shipping_price: float

    @property
    def total_price(self) -> float:
        return round(self.items_price + self.tax_price + self.shipping_price, 2)


def compute_charges(items_price, tax_rate=0.15, free_shipping_threshold=100.0, flat_shipping_fee=10.0):
    """Tax on the item total, plus a flat fee unless the items clear the threshold."""
    items_price = round(items_price, 2)
    tax_price = round(items_price * tax_rate, 2)
    shipping_price = 0.0 if items_price > free_shipping_threshold else round(flat_shipping_fee, 2)
    return OrderCharges(items_price=items_price, tax_price=tax_price, shipping_price=shipping_price)


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@commerce.value_object(part_of="Order")
class ShippingInfo:
    """Where the order goes. Captured at checkout and never edited."""

    address = String(required=True, max_length=255)
    city = String(required=True, max_length=100)
    state = String(required=True, max_length=100)
    country = String(required=True, max_length=100)
    zip_code = String(required=True, max_length=20)
    phone = String(required=True, max_length=30)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@commerce.entity(part_of="Order")
class OrderItem:
    """A cart line frozen at checkout time."""

    item_type = String(required=True, choices=ItemType)
    item_ref = Identifier(required=True)
    name = String(required=True, max_length=255)
    price = Float(required=True, min_value=0.0)
    quantity = Integer(required=True, min_value=1)
    image_ref = String(max_length=1000, default="")

    @property
    def is_product(self) -> bool:
        return self.item_type == ItemType.PRODUCT.value


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@commerce.aggregate
class Order:
    user_id = Identifier(required=True)
    order_items = HasMany(OrderItem)
    shipping_info = ValueObject(ShippingInfo)
    payment_method = String(required=True, choices=PaymentMethod)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    transaction_id = String(max_length=255)
    payment_date = DateTime()
    payment_initiated_at = DateTime()
    items_price = Float(default=0.0, min_value=0.0)
    tax_price = Float(default=0.0, min_value=0.0)
    shipping_price = Float(default=0.0, min_value=0.0)
    total_price = Float(default=0.0, min_value=0.0)
    order_status = String(choices=OrderStatus, default=OrderStatus.PROCESSING.value)
    delivered_at = DateTime()
    cancelled_at = DateTime()
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def total_must_be_sum_of_charges(self):
        expected = round((self.items_price or 0.0) + (self.tax_price or 0.0) + (self.shipping_price or 0.0), 2)
        if abs(expected - (self.total_price or 0.0)) > 0.005:
            raise ValidationError({"total_price": ["Total price must equal items, tax and shipping"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def place(cls, user_id, items, shipping_info, payment_method, charges: OrderCharges):
        """Create a ``processing`` order with a ``pending`` payment.

        Args:
            items: dicts with item_type, item_ref, name, price, quantity, image_ref.
        """
        if not items:
            raise ValidationError({"order_items": ["An order needs at least one item"]})

        now = datetime.now(UTC)
        order = cls(
            user_id=user_id,
            shipping_info=shipping_info,
            payment_method=PaymentMethod(payment_method).value,
            payment_status=PaymentStatus.PENDING.value,
            items_price=charges.items_price,
            tax_price=charges.tax_price,
            shipping_price=charges.shipping_price,
            total_price=charges.total_price,
            order_status=OrderStatus.PROCESSING.value,
            created_at=now,
            updated_at=now,
        )
        for item in items:
            order.add_order_items(
                OrderItem(
                    item_type=item["item_type"],
                    item_ref=str(item["item_ref"]),
                    name=item["name"],
                    price=item["price"],
                    quantity=item["quantity"],
                    image_ref=item.get("image_ref") or "",
                )
            )

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                user_id=str(user_id),
                items=json.dumps(
                    [
                        {
                            "item_type": item["item_type"],
                            "item_ref": str(item["item_ref"]),
                            "name": item["name"],
                            "price": item["price"],
                            "quantity": item["quantity"],
                        }
                        for item in items
                    ]
                ),
                item_count=len(items),
                items_price=order.items_price,
                tax_price=order.tax_price,
                shipping_price=order.shipping_price,
                total_price=order.total_price,
                payment_method=order.payment_method,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Access
    # -------------------------------------------------------------------
    def is_owned_by(self, user_id) -> bool:
        return str(self.user_id) == str(user_id)

    def assert_owned_by(self, user_id, action="access"):
        if not self.is_owned_by(user_id):
            raise UnauthorizedError(f"Not authorized to {action} this order")

    def assert_accessible_by(self, user_id, role=None, action="access"):
        if not self.is_owned_by(user_id) and role != "admin":
            raise UnauthorizedError(f"Not authorized to {action} this order")

    @property
    def status(self) -> OrderStatus:
        return OrderStatus(self.order_status)

    @property
    def payment(self) -> PaymentInfo:
        return PaymentInfo.of(self)

    @property
    def is_paid(self) -> bool:
        return self.payment_status == PaymentStatus.COMPLETED.value

    @property
    def uses_card(self) -> bool:
        return is_card(self.payment_method)

    def product_quantities(self) -> list[tuple[str, int]]:
        return [(str(item.item_ref), item.quantity) for item in self.order_items if item.is_product]

    # -------------------------------------------------------------------
    # Fulfilment
    # -------------------------------------------------------------------
    def update_status(self, new_status):
        """Move along the fulfilment path and apply any payment side effect."""
        target = OrderStatus(new_status)
        current = self.status

        if target == OrderStatus.CANCELLED:
            raise InvalidStateError("Orders are cancelled through the cancel operation")
        if target not in _VALID_TRANSITIONS[current]:
            raise InvalidStateError(f"Order cannot move from {current.value} to {target.value}")

        now = datetime.now(UTC)
        self.order_status = target.value
        if target == OrderStatus.DELIVERED:
            self.delivered_at = now

        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                previous_status=current.value,
                new_status=target.value,
                changed_at=now,
            )
        )

        effect = ORDER_STATUS_PAYMENT_EFFECTS.get(target.value)
        if effect == PaymentStatus.COMPLETED and not self.is_paid:
            self.complete_payment(source="delivery")

        self._touch(now)

    def cancel(self, cancelled_by="customer"):
        """Cancel the order and report which products get their stock back."""
        current = self.status
        if current not in _CANCELLABLE_STATES:
            raise InvalidStateError("Order cannot be cancelled at this stage")

        now = datetime.now(UTC)
        released = self.product_quantities()
        self.order_status = OrderStatus.CANCELLED.value
        self.cancelled_at = now
        self._touch(now)

        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                user_id=str(self.user_id),
                previous_status=current.value,
                cancelled_by=cancelled_by,
                released_items=json.dumps([{"product_id": pid, "quantity": qty} for pid, qty in released]),
                cancelled_at=now,
            )
        )
        return released

    # -------------------------------------------------------------------
    # Payment
    # -------------------------------------------------------------------
    def payment_attempt_key(self) -> str:
        """Gateway idempotency key for the next payment attempt.

        Stable until an attempt is committed, so a re-run of the same
        initiation reuses the intent the gateway already created.
        """
        previous = self.payment_initiated_at.isoformat() if self.payment_initiated_at else "initial"
        return f"order-{self.id}-{previous}"

    def begin_payment(self, transaction_id=None):
        """Start a new payment attempt, recording the gateway or reference id."""
        if self.status == OrderStatus.CANCELLED:
            raise InvalidStateError("Cannot pay for a cancelled order")
        assert_can_transition(self.payment_status, PaymentStatus.PENDING)

        now = datetime.now(UTC)
        self.payment_status = PaymentStatus.PENDING.value
        if transaction_id:
            self.transaction_id = transaction_id
        self.payment_initiated_at = now
        self._touch(now)

        self.raise_(
            PaymentInitiated(
                order_id=str(self.id),
                payment_method=self.payment_method,
                transaction_id=self.transaction_id,
                amount=self.total_price,
                initiated_at=now,
            )
        )

    def complete_payment(self, source, transaction_id=None):
        assert_can_transition(self.payment_status, PaymentStatus.COMPLETED)

        now = datetime.now(UTC)
        self.payment_status = PaymentStatus.COMPLETED.value
        self.payment_date = now
        if transaction_id:
            self.transaction_id = transaction_id
        self._touch(now)

        self.raise_(
            PaymentCompleted(
                order_id=str(self.id),
                payment_method=self.payment_method,
                transaction_id=self.transaction_id,
                amount=self.total_price,
                source=source,
                paid_at=now,
            )
        )

    def fail_payment(self, reason=None):
        assert_can_transition(self.payment_status, PaymentStatus.FAILED)

        now = datetime.now(UTC)
        self.payment_status = PaymentStatus.FAILED.value
        self._touch(now)

        self.raise_(
            PaymentFailed(
                order_id=str(self.id),
                payment_method=self.payment_method,
                transaction_id=self.transaction_id,
                reason=reason,
                failed_at=now,
            )
        )

    def _touch(self, now):
        self.total_price = round(self.items_price + self.tax_price + self.shipping_price, 2)
        self.updated_at = now


@commerce.repository(part_of=Order)
class OrderRepository:
    def find_by_transaction_id(self, transaction_id) -> Order | None:
        if not transaction_id:
            return None
        return self._dao.query.filter(transaction_id=transaction_id).all().first

    def for_user(self, user_id) -> list[Order]:
        """A user's orders, newest first."""
        orders = self._dao.query.filter(user_id=str(user_id)).all().items
        return sorted(orders, key=lambda o: o.created_at, reverse=True)

    def newest_first(self) -> list[Order]:
        orders = self._dao.query.all().items
        return sorted(orders, key=lambda o: o.created_at, reverse=True)

    def pending_card_payments_started_before(self, cutoff) -> list[Order]:
        pending = self._dao.query.filter(payment_status=PaymentStatus.PENDING.value).all().items
        return [
            order
            for order in pending
            if order.uses_card
            and order.payment_initiated_at
            and order.payment_initiated_at.replace(tzinfo=None) <= cutoff.replace(tzinfo=None)
        ]
