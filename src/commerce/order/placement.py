"""Order placement: converts the user's cart into an order.

Everything happens in memory first: the order is built, every product line is
reserved through the ledger and every customization is marked ordered. Only
after all of that succeeds are the order, products, customizations and the
emptied cart registered with the repositories, which the command handler's
unit of work commits together. A failure at any step leaves the stored state
untouched.
"""

import json

import structlog
from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from commerce.cart.cart import Cart
from commerce.config import get_settings
from commerce.customization.customization import Customization
from commerce.customization.design import load_customization
from commerce.domain import commerce
from commerce.errors import EmptyCartError, UnauthorizedError
from commerce.inventory.ledger import InventoryLedger
from commerce.order.order import Order, ShippingInfo, compute_charges
from commerce.payment.state_machine import PaymentMethod

logger = structlog.get_logger(__name__)


@commerce.command(part_of="Order")
class PlaceOrder:
    user_id = Identifier(required=True)
    shipping_info = Text(required=True)  # JSON: address, city, state, country, zip_code, phone
    payment_method = String(required=True, choices=PaymentMethod)


def _snapshot(cart):
    return [
        {
            "item_type": line.item_type,
            "item_ref": str(line.item_ref),
            "name": line.name,
            "price": line.unit_price,
            "quantity": line.quantity,
            "image_ref": line.image_ref or "",
        }
        for line in cart.lines
    ]


@commerce.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        settings = get_settings()
        cart_repo = current_domain.repository_for(Cart)
        cart = cart_repo.for_user(command.user_id)
        if cart.is_empty:
            raise EmptyCartError()

        shipping = json.loads(command.shipping_info) if isinstance(command.shipping_info, str) else command.shipping_info

        charges = compute_charges(
            cart.total_price,
            tax_rate=settings.tax_rate,
            free_shipping_threshold=settings.free_shipping_threshold,
            flat_shipping_fee=settings.flat_shipping_fee,
        )
        order = Order.place(
            user_id=command.user_id,
            items=_snapshot(cart),
            shipping_info=ShippingInfo(**shipping),
            payment_method=command.payment_method,
            charges=charges,
        )

        ledger = InventoryLedger()
        products = ledger.reserve_all(order.product_quantities(), order_id=order.id)

        customizations = []
        seen = set()
        for line in cart.lines:
            if line.is_product() or str(line.item_ref) in seen:
                continue
            seen.add(str(line.item_ref))
            customization = load_customization(line.item_ref)
            if not customization.is_owned_by(command.user_id):
                raise UnauthorizedError("Not authorized to order this customization")
            customization.mark_ordered(order_id=order.id)
            customizations.append(customization)

        cart.clear()

        current_domain.repository_for(Order).add(order)
        ledger.persist(products)
        customization_repo = current_domain.repository_for(Customization)
        for customization in customizations:
            customization_repo.add(customization)
        cart_repo.add(cart)

        logger.info(
            "Order placed",
            order_id=str(order.id),
            user_id=str(command.user_id),
            item_count=len(order.order_items),
            total_price=order.total_price,
            payment_method=order.payment_method,
        )
        return str(order.id)
