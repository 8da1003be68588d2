"""Order status updates (admin): command and handler."""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from commerce.domain import commerce
from commerce.errors import UnauthorizedError
from commerce.order.order import Order, OrderStatus
from commerce.order.queries import load_order

logger = structlog.get_logger(__name__)


@commerce.command(part_of="Order")
class UpdateOrderStatus:
    order_id = Identifier(required=True)
    status = String(required=True, choices=OrderStatus)
    role = String(max_length=20, default="user")


@commerce.command_handler(part_of=Order)
class UpdateOrderStatusHandler:
    @handle(UpdateOrderStatus)
    def update_order_status(self, command):
        if command.role != "admin":
            raise UnauthorizedError("Only admins can change order status")

        order = load_order(command.order_id)
        previous = order.order_status
        order.update_status(command.status)
        current_domain.repository_for(Order).add(order)

        logger.info(
            "Order status updated",
            order_id=str(order.id),
            previous_status=previous,
            new_status=order.order_status,
            payment_status=order.payment_status,
        )
        return str(order.id)
