"""Gateway webhook reconciliation: command and handler.

Only runs on events whose signature the gateway adapter has already
verified. Events are matched to orders by transaction id. Anything that
cannot be applied (unknown order, unhandled event type, a replay, or a late
failure after the payment completed) is logged and acknowledged so the
gateway stops redelivering it.
"""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from commerce.domain import commerce
from commerce.order.order import Order
from commerce.payment.state_machine import PaymentStatus

logger = structlog.get_logger(__name__)

PAYMENT_SUCCEEDED = "payment_intent.succeeded"
PAYMENT_FAILED = "payment_intent.payment_failed"


@commerce.command(part_of="Order")
class ReconcileGatewayEvent:
    event_id = Identifier(required=True)
    event_type = String(required=True, max_length=100)
    transaction_id = String(max_length=255)
    failure_reason = String(max_length=500)


@commerce.command_handler(part_of=Order)
class ReconcileGatewayEventHandler:
    @handle(ReconcileGatewayEvent)
    def reconcile(self, command):
        if command.event_type not in (PAYMENT_SUCCEEDED, PAYMENT_FAILED):
            logger.info("Unhandled gateway event type", event_type=command.event_type, event_id=command.event_id)
            return False

        repo = current_domain.repository_for(Order)
        order = repo.find_by_transaction_id(command.transaction_id)
        if order is None:
            logger.warning(
                "Gateway event for unknown transaction dropped",
                event_id=command.event_id,
                event_type=command.event_type,
                transaction_id=command.transaction_id,
            )
            return False

        current = PaymentStatus(order.payment_status)
        if current == PaymentStatus.COMPLETED:
            logger.info(
                "Payment already completed, gateway event ignored",
                order_id=str(order.id),
                event_type=command.event_type,
            )
            return False

        if command.event_type == PAYMENT_SUCCEEDED:
            order.complete_payment(source="webhook")
        else:
            if current == PaymentStatus.FAILED:
                logger.info("Payment already failed, replay ignored", order_id=str(order.id))
                return False
            order.fail_payment(reason=command.failure_reason)

        repo.add(order)
        logger.info(
            "Gateway event applied",
            order_id=str(order.id),
            event_type=command.event_type,
            payment_status=order.payment_status,
        )
        return True
