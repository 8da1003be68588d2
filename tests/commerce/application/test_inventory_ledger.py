"""Application tests for concurrent stock reservations through the ledger."""

import pytest
from protean import current_domain
from protean.exceptions import ExpectedVersionError

from commerce.errors import InsufficientStockError, NotFoundError
from commerce.inventory.catalogue import RegisterProduct
from commerce.inventory.ledger import InventoryLedger


def _register_product(stock=1):
    return current_domain.process(RegisterProduct(name="Oud Noir", price=45.0, stock=stock), asynchronous=False)


class TestConcurrentReservations:
    def test_second_writer_on_last_unit_is_rejected(self):
        product_id = _register_product(stock=1)
        first, second = InventoryLedger(), InventoryLedger()

        mine = first.reserve(product_id, 1)
        theirs = second.reserve(product_id, 1)

        first.persist([mine])
        with pytest.raises(ExpectedVersionError):
            second.persist([theirs])

        assert InventoryLedger().available(product_id) == 0

    def test_reload_after_conflict_sees_shortfall(self):
        product_id = _register_product(stock=1)
        first, second = InventoryLedger(), InventoryLedger()
        stale = second.reserve(product_id, 1)
        first.persist([first.reserve(product_id, 1)])

        with pytest.raises(ExpectedVersionError):
            second.persist([stale])
        with pytest.raises(InsufficientStockError):
            second.reserve(product_id, 1)

    def test_disjoint_reservations_both_commit(self):
        product_id = _register_product(stock=3)
        first, second = InventoryLedger(), InventoryLedger()

        first.persist([first.reserve(product_id, 1)])
        second.persist([second.reserve(product_id, 2)])

        assert InventoryLedger().available(product_id) == 0


class TestLedgerLookups:
    def test_unknown_product(self):
        with pytest.raises(NotFoundError, match="Product not found with id of missing"):
            InventoryLedger().available("missing")
