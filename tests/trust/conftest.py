import pytest
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def trust_bed():
    from trust.domain import trust

    bed = DomainFixture(trust)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(trust_bed):
    with trust_bed.domain_context():
        yield
