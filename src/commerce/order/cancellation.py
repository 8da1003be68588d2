"""Order cancellation: command and handler.

Cancelling gives the reserved stock back; the order and the released
products are committed in the same unit of work.
"""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from commerce.domain import commerce
from commerce.inventory.ledger import InventoryLedger
from commerce.order.order import Order
from commerce.order.queries import load_order

logger = structlog.get_logger(__name__)


@commerce.command(part_of="Order")
class CancelOrder:
    order_id = Identifier(required=True)
    user_id = Identifier(required=True)
    role = String(max_length=20, default="user")


@commerce.command_handler(part_of=Order)
class CancelOrderHandler:
    @handle(CancelOrder)
    def cancel_order(self, command):
        order = load_order(command.order_id)
        order.assert_accessible_by(command.user_id, command.role, action="cancel")

        cancelled_by = "admin" if command.role == "admin" and not order.is_owned_by(command.user_id) else "customer"
        released = order.cancel(cancelled_by=cancelled_by)

        ledger = InventoryLedger()
        products = ledger.release_all(released, order_id=order.id)

        current_domain.repository_for(Order).add(order)
        ledger.persist(products)

        logger.info(
            "Order cancelled",
            order_id=str(order.id),
            cancelled_by=cancelled_by,
            released_lines=len(released),
        )
        return str(order.id)
