"""Payment initiation: command and handler.

Card orders get a gateway payment intent whose client secret goes back to the
caller (it is never stored). Mobile wallet and bank transfer orders get a
generated reference the customer quotes when paying out of band. Cash on
delivery has nothing to initiate; its payment is collected on delivery.
"""

import structlog
from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from commerce.config import get_settings
from commerce.domain import commerce
from commerce.errors import InvalidStateError
from commerce.order.order import Order, OrderStatus
from commerce.order.queries import load_order
from commerce.payment.gateway import get_gateway
from commerce.payment.state_machine import PaymentMethod, PaymentStatus, generate_reference, to_minor_units

logger = structlog.get_logger(__name__)


@commerce.command(part_of="Order")
class InitiatePayment:
    order_id = Identifier(required=True)
    user_id = Identifier(required=True)


@commerce.command_handler(part_of=Order)
class InitiatePaymentHandler:
    @handle(InitiatePayment)
    def initiate_payment(self, command):
        order = load_order(command.order_id)
        order.assert_owned_by(command.user_id, action="pay for")

        if order.payment_status == PaymentStatus.COMPLETED.value:
            raise InvalidStateError("Order already paid")
        if order.status == OrderStatus.CANCELLED:
            raise InvalidStateError("Cannot pay for a cancelled order")

        client_secret = None
        method = PaymentMethod(order.payment_method)

        if method == PaymentMethod.COD:
            logger.info("Cash on delivery, nothing to initiate", order_id=str(order.id))
        elif order.uses_card:
            settings = get_settings()
            intent = get_gateway().create_payment_intent(
                amount=to_minor_units(order.total_price),
                currency=settings.currency,
                metadata={"order_id": str(order.id)},
                idempotency_key=order.payment_attempt_key(),
            )
            order.begin_payment(transaction_id=intent.intent_id)
            client_secret = intent.client_secret
        else:
            order.begin_payment(transaction_id=generate_reference(method))

        if method != PaymentMethod.COD:
            current_domain.repository_for(Order).add(order)
            logger.info(
                "Payment initiated",
                order_id=str(order.id),
                payment_method=order.payment_method,
                transaction_id=order.transaction_id,
            )

        return {
            "order_id": str(order.id),
            "client_secret": client_secret,
            "payment_reference": order.transaction_id,
        }
