import pytest
from protean.integrations.pytest import DomainFixture

from commerce.payment.gateway import reset_gateway, set_gateway
from commerce.payment.gateway.fake_adapter import FakeGateway


@pytest.fixture(scope="session")
def commerce_bed():
    from commerce.domain import commerce

    bed = DomainFixture(commerce)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(commerce_bed):
    with commerce_bed.domain_context():
        yield


@pytest.fixture(autouse=True)
def fake_gateway():
    """A fresh FakeGateway per test, so configured failures never leak."""
    gateway = FakeGateway(webhook_secret="whsec_test_commerce")
    set_gateway(gateway)
    yield gateway
    reset_gateway()
