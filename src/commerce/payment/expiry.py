"""Stale payment expiry: command and handler.

Card payments wait for a gateway webhook that may never come. Meant to be
triggered periodically by an external scheduler; intents still pending past
the window are marked failed so the customer can start a new attempt.
"""

from datetime import UTC, datetime, timedelta

import structlog
from protean import handle
from protean.fields import DateTime, Integer
from protean.utils.globals import current_domain

from commerce.config import get_settings
from commerce.domain import commerce
from commerce.order.order import Order

logger = structlog.get_logger(__name__)


@commerce.command(part_of="Order")
class ExpireStalePayments:
    """Fail card payments pending longer than ``older_than_minutes``."""

    older_than_minutes = Integer(min_value=1)  # Optional: defaults to settings
    as_of = DateTime()  # Optional: defaults to now


@commerce.command_handler(part_of=Order)
class ExpireStalePaymentsHandler:
    @handle(ExpireStalePayments)
    def expire_stale_payments(self, command):
        as_of = command.as_of or datetime.now(UTC)
        minutes = command.older_than_minutes or get_settings().pending_payment_expiry_minutes
        cutoff = as_of - timedelta(minutes=minutes)

        repo = current_domain.repository_for(Order)
        stale = repo.pending_card_payments_started_before(cutoff)
        if not stale:
            logger.info("No stale payments found", cutoff=cutoff.isoformat())
            return 0

        for order in stale:
            order.fail_payment(reason=f"Payment not completed within {minutes} minutes")
            repo.add(order)
            logger.info(
                "Stale payment expired",
                order_id=str(order.id),
                transaction_id=order.transaction_id,
                initiated_at=str(order.payment_initiated_at),
            )

        logger.info("Stale payment expiry complete", expired_count=len(stale))
        return len(stale)
