import pytest
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def ordering_bed():
    from ordering.domain import ordering
    from ordering.utils.db import drop_db, setup_db

    bed = DomainFixture(ordering)
    bed.setup()
    setup_db(ordering)
    yield bed
    drop_db(ordering)
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(ordering_bed):
    with ordering_bed.domain_context():
        yield

        from protean import current_domain

        # Clear all databases
        for _, provider in current_domain.providers.items():
            provider._data_reset()

        # Drain event stores
        current_domain.event_store.store._data_reset()


@pytest.fixture()
def products(catalog):
    """A small storefront: plain products, a variant product and a retired one."""
    catalog.add_product("prod-a", price=10.0, stock=50)
    catalog.add_product("prod-b", price=25.5, stock=5)
    catalog.add_product(
        "prod-shirt",
        price=20.0,
        variants={
            "Large": {"price": 22.0, "stock": 3},
            "Small": {"price": 18.0, "stock": 10},
        },
    )
    catalog.add_product("prod-retired", price=5.0, is_active=False)
    return catalog
