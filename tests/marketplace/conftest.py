import pytest
from protean import current_domain
from protean.integrations.pytest import DomainFixture

from marketplace.gateway import reset_gateway
from marketplace.utils.logging import clear_context


@pytest.fixture(scope="session")
def marketplace_bed():
    from marketplace.domain import marketplace

    bed = DomainFixture(marketplace)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(marketplace_bed):
    with marketplace_bed.domain_context():
        yield

        for _, provider in current_domain.providers.items():
            provider._data_reset()
        current_domain.event_store.store._data_reset()


@pytest.fixture(autouse=True)
def _fresh_gateway():
    """Every test starts with an approving FakeGateway and an empty log context."""
    reset_gateway()
    clear_context()
    yield
    reset_gateway()
