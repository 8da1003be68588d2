"""Manual payment confirmation: for mobile wallet and bank transfer payments."""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from commerce.domain import commerce
from commerce.order.order import Order
from commerce.order.queries import load_order

logger = structlog.get_logger(__name__)


@commerce.command(part_of="Order")
class ConfirmPayment:
    order_id = Identifier(required=True)
    user_id = Identifier(required=True)
    role = String(max_length=20, default="user")
    transaction_id = String(max_length=255)  # Overrides the stored reference when given


@commerce.command_handler(part_of=Order)
class ConfirmPaymentHandler:
    @handle(ConfirmPayment)
    def confirm_payment(self, command):
        order = load_order(command.order_id)
        order.assert_accessible_by(command.user_id, command.role, action="confirm payment for")

        order.complete_payment(source="confirmation", transaction_id=command.transaction_id)
        current_domain.repository_for(Order).add(order)

        logger.info(
            "Payment confirmed",
            order_id=str(order.id),
            transaction_id=order.transaction_id,
            confirmed_by=command.role,
        )
        return str(order.id)
