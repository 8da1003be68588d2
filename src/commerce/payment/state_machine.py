"""Payment state machine: statuses, methods and the transitions between them.

Payment status lives on the Order (``payment_status`` and friends); this
module owns the rules. Order methods consult the tables here before touching
any payment field, so every path (initiation, manual confirmation, webhooks,
delivery, expiry) moves payment state the same way.

Transitions:
    pending   → pending (new attempt), completed, failed
    failed    → pending (new attempt), completed
    completed → (terminal)

Order status side effects:
    delivered → payment completed (cash or card collected on delivery)
"""

import random
import time
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from commerce.errors import InvalidStateError


class PaymentStatus(Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class PaymentMethod(Enum):
    CREDIT_CARD = "credit_card"
    DEBIT_CARD = "debit_card"
    EASYPAISA = "easypaisa"
    JAZZCASH = "jazzcash"
    BANK_TRANSFER = "bank_transfer"
    COD = "cod"


CARD_METHODS = frozenset({PaymentMethod.CREDIT_CARD, PaymentMethod.DEBIT_CARD})
MOBILE_WALLET_METHODS = frozenset({PaymentMethod.EASYPAISA, PaymentMethod.JAZZCASH})

_REFERENCE_PREFIXES = {
    PaymentMethod.EASYPAISA: "MP",
    PaymentMethod.JAZZCASH: "MP",
    PaymentMethod.BANK_TRANSFER: "BT",
}

_VALID_TRANSITIONS = {
    PaymentStatus.PENDING: {PaymentStatus.PENDING, PaymentStatus.COMPLETED, PaymentStatus.FAILED},
    PaymentStatus.FAILED: {PaymentStatus.PENDING, PaymentStatus.COMPLETED},
    PaymentStatus.COMPLETED: set(),  # Terminal
}

# Order status → payment status it forces
ORDER_STATUS_PAYMENT_EFFECTS = {
    "delivered": PaymentStatus.COMPLETED,
}


def can_transition(current, target) -> bool:
    return PaymentStatus(target) in _VALID_TRANSITIONS[PaymentStatus(current)]


def assert_can_transition(current, target) -> None:
    current, target = PaymentStatus(current), PaymentStatus(target)
    if target not in _VALID_TRANSITIONS[current]:
        if current == PaymentStatus.COMPLETED:
            raise InvalidStateError("Order already paid")
        raise InvalidStateError(f"Payment cannot move from {current.value} to {target.value}")


def is_card(method) -> bool:
    return PaymentMethod(method) in CARD_METHODS


def generate_reference(method) -> str:
    """Out-of-band payment reference: prefix, epoch milliseconds, 0-999 suffix."""
    prefix = _REFERENCE_PREFIXES[PaymentMethod(method)]
    return f"{prefix}{int(time.time() * 1000)}{random.randint(0, 999)}"  # noqa: S311


def to_minor_units(amount: float) -> int:
    return int(round(amount * 100))


@dataclass(frozen=True)
class PaymentInfo:
    """Read-only view over an order's payment fields."""

    method: str
    status: str
    transaction_id: str | None = None
    payment_date: datetime | None = None

    @classmethod
    def of(cls, order) -> "PaymentInfo":
        return cls(
            method=order.payment_method,
            status=order.payment_status,
            transaction_id=order.transaction_id,
            payment_date=order.payment_date,
        )

    def to_dict(self) -> dict:
        return {
            "method": self.method,
            "status": self.status,
            "transaction_id": self.transaction_id,
            "payment_date": self.payment_date.isoformat() if self.payment_date else None,
        }
