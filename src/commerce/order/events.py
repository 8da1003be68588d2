"""Domain events for the Order aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer, String, Text

from commerce.domain import commerce


@commerce.event(part_of="Order")
class OrderPlaced:
    """A cart was converted into an order and its stock reserved."""

    __version__ = 1

    order_id = Identifier(required=True)
    user_id = Identifier(required=True)
    items = Text(required=True)  # JSON: [{item_type, item_ref, name, price, quantity}]
    item_count = Integer(required=True)
    items_price = Float(required=True)
    tax_price = Float(required=True)
    shipping_price = Float(required=True)
    total_price = Float(required=True)
    payment_method = String(required=True)
    placed_at = DateTime(required=True)


@commerce.event(part_of="Order")
class OrderStatusChanged:
    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    changed_at = DateTime(required=True)


@commerce.event(part_of="Order")
class OrderCancelled:
    """The order was cancelled; product lines carry the stock to give back."""

    __version__ = 1

    order_id = Identifier(required=True)
    user_id = Identifier(required=True)
    previous_status = String(required=True)
    cancelled_by = String(required=True)
    released_items = Text()  # JSON: [{product_id, quantity}]
    cancelled_at = DateTime(required=True)


@commerce.event(part_of="Order")
class PaymentInitiated:
    __version__ = 1

    order_id = Identifier(required=True)
    payment_method = String(required=True)
    transaction_id = String()
    amount = Float(required=True)
    initiated_at = DateTime(required=True)


@commerce.event(part_of="Order")
class PaymentCompleted:
    __version__ = 1

    order_id = Identifier(required=True)
    payment_method = String(required=True)
    transaction_id = String()
    amount = Float(required=True)
    source = String(required=True)  # confirmation, webhook, delivery
    paid_at = DateTime(required=True)


@commerce.event(part_of="Order")
class PaymentFailed:
    __version__ = 1

    order_id = Identifier(required=True)
    payment_method = String(required=True)
    transaction_id = String()
    reason = String(max_length=500)
    failed_at = DateTime(required=True)
