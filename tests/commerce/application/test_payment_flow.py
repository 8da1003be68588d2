"""Application tests for initiating, confirming, reconciling and expiring payments."""

import json
from datetime import UTC, datetime, timedelta

import pytest
from protean import current_domain
from protean.exceptions import ExpectedVersionError

from commerce.cart.items import AddCartItem
from commerce.errors import GatewayError, InvalidStateError, UnauthorizedError
from commerce.inventory.catalogue import RegisterProduct
from commerce.order.cancellation import CancelOrder
from commerce.order.fulfillment import UpdateOrderStatus
from commerce.order.order import Order
from commerce.order.placement import PlaceOrder
from commerce.order.queries import load_order
from commerce.payment.confirmation import ConfirmPayment
from commerce.payment.expiry import ExpireStalePayments
from commerce.payment.initiation import InitiatePayment
from commerce.payment.state_machine import PaymentStatus
from commerce.payment.webhook import PAYMENT_FAILED, PAYMENT_SUCCEEDED, ReconcileGatewayEvent

USER = "user-001"
SHIPPING = {
    "address": "5 Mall Road",
    "city": "Karachi",
    "state": "Sindh",
    "country": "Pakistan",
    "zip_code": "74000",
    "phone": "+92-321-0000000",
}


def _place_order(payment_method="credit_card"):
    product_id = current_domain.process(
        RegisterProduct(name="Amber Musk", price=20.0, stock=10), asynchronous=False
    )
    current_domain.process(
        AddCartItem(user_id=USER, item_type="product", item_id=product_id, quantity=3), asynchronous=False
    )
    return current_domain.process(
        PlaceOrder(user_id=USER, shipping_info=json.dumps(SHIPPING), payment_method=payment_method),
        asynchronous=False,
    )


def _initiate(order_id, user_id=USER):
    return current_domain.process(InitiatePayment(order_id=order_id, user_id=user_id), asynchronous=False)


def _reconcile(event_type, transaction_id, failure_reason=None, event_id="evt_001"):
    return current_domain.process(
        ReconcileGatewayEvent(
            event_id=event_id,
            event_type=event_type,
            transaction_id=transaction_id,
            failure_reason=failure_reason,
        ),
        asynchronous=False,
    )


class TestInitiateCardPayment:
    def test_creates_intent_in_minor_units(self, fake_gateway):
        order_id = _place_order()
        result = _initiate(order_id)

        call = fake_gateway.calls[-1]
        assert call["method"] == "create_payment_intent"
        assert call["amount"] == 7900
        assert call["currency"] == "usd"
        assert call["metadata"] == {"order_id": order_id}
        assert result["client_secret"].startswith(result["payment_reference"])

    def test_records_intent_id_on_order(self):
        order_id = _place_order()
        result = _initiate(order_id)

        order = load_order(order_id)
        assert order.transaction_id == result["payment_reference"]
        assert order.payment_status == PaymentStatus.PENDING.value
        assert order.payment_initiated_at is not None

    def test_client_secret_is_not_stored(self):
        order_id = _place_order()
        result = _initiate(order_id)
        assert load_order(order_id).transaction_id != result["client_secret"]

    def test_gateway_failure_leaves_order_untouched(self, fake_gateway):
        fake_gateway.configure(should_succeed=False, failure_reason="Card declined")
        order_id = _place_order()

        with pytest.raises(GatewayError, match="Card declined"):
            _initiate(order_id)

        order = load_order(order_id)
        assert order.transaction_id is None
        assert order.payment_initiated_at is None
        assert order.payment_status == PaymentStatus.PENDING.value

    def test_retry_after_failure_replaces_intent(self):
        order_id = _place_order()
        first = _initiate(order_id)
        _reconcile(PAYMENT_FAILED, first["payment_reference"], failure_reason="Card declined")

        second = _initiate(order_id)
        order = load_order(order_id)
        assert order.payment_status == PaymentStatus.PENDING.value
        assert order.transaction_id == second["payment_reference"]
        assert second["payment_reference"] != first["payment_reference"]

    def test_first_attempt_key(self, fake_gateway):
        order_id = _place_order()
        _initiate(order_id)
        assert fake_gateway.calls[-1]["idempotency_key"] == f"order-{order_id}-initial"

    def test_new_attempt_gets_new_key(self, fake_gateway):
        order_id = _place_order()
        first = _initiate(order_id)
        _reconcile(PAYMENT_FAILED, first["payment_reference"])
        _initiate(order_id)

        keys = [call["idempotency_key"] for call in fake_gateway.calls if call["method"] == "create_payment_intent"]
        assert len(set(keys)) == 2

    def test_rerun_after_version_conflict_reuses_intent(self, fake_gateway, monkeypatch):
        order_id = _place_order()
        repo_class = type(current_domain.repository_for(Order))
        original_add = repo_class.add
        conflicts = [ExpectedVersionError("Order was modified concurrently")]

        def add_once_stale(self, aggregate, *args, **kwargs):
            if conflicts:
                raise conflicts.pop()
            return original_add(self, aggregate, *args, **kwargs)

        monkeypatch.setattr(repo_class, "add", add_once_stale)
        result = _initiate(order_id)
        monkeypatch.undo()

        intent_calls = [call for call in fake_gateway.calls if call["method"] == "create_payment_intent"]
        assert len(intent_calls) == 2
        assert intent_calls[0]["idempotency_key"] == intent_calls[1]["idempotency_key"]
        assert len(fake_gateway.intents) == 1
        assert load_order(order_id).transaction_id == result["payment_reference"]


class TestInitiateOtherMethods:
    @pytest.mark.parametrize("method", ["easypaisa", "jazzcash"])
    def test_mobile_wallet_reference(self, method, fake_gateway):
        order_id = _place_order(payment_method=method)
        result = _initiate(order_id)

        assert result["client_secret"] is None
        assert result["payment_reference"].startswith("MP")
        assert load_order(order_id).transaction_id == result["payment_reference"]
        assert fake_gateway.calls == []

    def test_bank_transfer_reference(self):
        order_id = _place_order(payment_method="bank_transfer")
        assert _initiate(order_id)["payment_reference"].startswith("BT")

    def test_cash_on_delivery_has_nothing_to_initiate(self, fake_gateway):
        order_id = _place_order(payment_method="cod")
        result = _initiate(order_id)

        assert result["client_secret"] is None
        assert result["payment_reference"] is None
        assert load_order(order_id).payment_initiated_at is None
        assert fake_gateway.calls == []


class TestInitiateGuards:
    def test_only_owner_can_pay(self):
        order_id = _place_order()
        with pytest.raises(UnauthorizedError):
            _initiate(order_id, user_id="user-999")

    def test_already_paid(self):
        order_id = _place_order(payment_method="bank_transfer")
        current_domain.process(ConfirmPayment(order_id=order_id, user_id=USER), asynchronous=False)
        with pytest.raises(InvalidStateError, match="Order already paid"):
            _initiate(order_id)

    def test_cancelled_order(self):
        order_id = _place_order()
        current_domain.process(CancelOrder(order_id=order_id, user_id=USER), asynchronous=False)
        with pytest.raises(InvalidStateError):
            _initiate(order_id)


class TestConfirmPayment:
    def test_confirm_completes_payment(self):
        order_id = _place_order(payment_method="easypaisa")
        reference = _initiate(order_id)["payment_reference"]
        current_domain.process(ConfirmPayment(order_id=order_id, user_id=USER), asynchronous=False)

        order = load_order(order_id)
        assert order.is_paid
        assert order.payment_date is not None
        assert order.transaction_id == reference

    def test_confirm_with_explicit_transaction_id(self):
        order_id = _place_order(payment_method="bank_transfer")
        current_domain.process(
            ConfirmPayment(order_id=order_id, user_id=USER, transaction_id="HBL-778899"), asynchronous=False
        )
        assert load_order(order_id).transaction_id == "HBL-778899"

    def test_confirm_twice(self):
        order_id = _place_order(payment_method="bank_transfer")
        current_domain.process(ConfirmPayment(order_id=order_id, user_id=USER), asynchronous=False)
        paid_at = load_order(order_id).payment_date
        assert paid_at is not None

        with pytest.raises(InvalidStateError, match="Order already paid"):
            current_domain.process(ConfirmPayment(order_id=order_id, user_id=USER), asynchronous=False)

        order = load_order(order_id)
        assert order.is_paid
        assert order.payment_date == paid_at

    def test_stranger_cannot_confirm(self):
        order_id = _place_order(payment_method="bank_transfer")
        with pytest.raises(UnauthorizedError):
            current_domain.process(ConfirmPayment(order_id=order_id, user_id="user-999"), asynchronous=False)


class TestReconcileGatewayEvent:
    def test_success_completes_payment(self):
        order_id = _place_order()
        intent_id = _initiate(order_id)["payment_reference"]

        assert _reconcile(PAYMENT_SUCCEEDED, intent_id) is True
        order = load_order(order_id)
        assert order.is_paid
        assert order.payment_date is not None

    def test_failure_marks_failed(self):
        order_id = _place_order()
        intent_id = _initiate(order_id)["payment_reference"]

        assert _reconcile(PAYMENT_FAILED, intent_id, failure_reason="Insufficient funds") is True
        assert load_order(order_id).payment_status == PaymentStatus.FAILED.value

    def test_unknown_transaction_is_dropped(self):
        order_id = _place_order()
        _initiate(order_id)
        before = load_order(order_id)

        assert _reconcile(PAYMENT_SUCCEEDED, "pi_unknown") is False

        after = load_order(order_id)
        assert after.payment_status == before.payment_status
        assert after.updated_at == before.updated_at

    def test_late_failure_never_downgrades_completed(self):
        order_id = _place_order()
        intent_id = _initiate(order_id)["payment_reference"]
        _reconcile(PAYMENT_SUCCEEDED, intent_id, event_id="evt_1")

        assert _reconcile(PAYMENT_FAILED, intent_id, event_id="evt_2") is False
        assert load_order(order_id).is_paid

    def test_success_replay_is_ignored(self):
        order_id = _place_order()
        intent_id = _initiate(order_id)["payment_reference"]
        _reconcile(PAYMENT_SUCCEEDED, intent_id)
        paid_at = load_order(order_id).payment_date

        assert _reconcile(PAYMENT_SUCCEEDED, intent_id) is False
        assert load_order(order_id).payment_date == paid_at

    def test_failure_replay_is_ignored(self):
        order_id = _place_order()
        intent_id = _initiate(order_id)["payment_reference"]
        _reconcile(PAYMENT_FAILED, intent_id)
        assert _reconcile(PAYMENT_FAILED, intent_id) is False

    def test_success_after_failure_completes(self):
        order_id = _place_order()
        intent_id = _initiate(order_id)["payment_reference"]
        _reconcile(PAYMENT_FAILED, intent_id)
        assert _reconcile(PAYMENT_SUCCEEDED, intent_id) is True
        assert load_order(order_id).is_paid

    def test_unhandled_event_type(self):
        order_id = _place_order()
        intent_id = _initiate(order_id)["payment_reference"]
        assert _reconcile("charge.refunded", intent_id) is False
        assert load_order(order_id).payment_status == PaymentStatus.PENDING.value

    def test_success_after_delivery_is_ignored(self):
        order_id = _place_order()
        intent_id = _initiate(order_id)["payment_reference"]
        for status in ("shipped", "delivered"):
            current_domain.process(
                UpdateOrderStatus(order_id=order_id, status=status, role="admin"), asynchronous=False
            )
        assert _reconcile(PAYMENT_SUCCEEDED, intent_id) is False


class TestExpireStalePayments:
    def _expire(self, hours_later, minutes=60):
        return current_domain.process(
            ExpireStalePayments(older_than_minutes=minutes, as_of=datetime.now(UTC) + timedelta(hours=hours_later)),
            asynchronous=False,
        )

    def test_stale_card_payment_fails(self):
        order_id = _place_order()
        _initiate(order_id)

        assert self._expire(hours_later=2) == 1
        assert load_order(order_id).payment_status == PaymentStatus.FAILED.value

    def test_recent_payment_is_kept(self):
        order_id = _place_order()
        _initiate(order_id)

        assert self._expire(hours_later=0) == 0
        assert load_order(order_id).payment_status == PaymentStatus.PENDING.value

    def test_uninitiated_and_non_card_orders_are_skipped(self):
        _place_order()
        wallet_order = _place_order(payment_method="jazzcash")
        _initiate(wallet_order)

        assert self._expire(hours_later=48) == 0

    def test_completed_payments_are_skipped(self):
        order_id = _place_order()
        intent_id = _initiate(order_id)["payment_reference"]
        _reconcile(PAYMENT_SUCCEEDED, intent_id)

        assert self._expire(hours_later=48) == 0
        assert load_order(order_id).is_paid
