import pytest
from protean.integrations.pytest import DomainFixture
from storefront.catalog import reset_catalog, set_catalog
from storefront.catalog.memory_adapter import InMemoryCatalog
from storefront.catalog.port import Product
from storefront.config import get_settings
from storefront.identity import reset_auth_provider
from storefront.order_service import reset_order_service


@pytest.fixture(scope="session")
def storefront_bed():
    from storefront.domain import storefront

    bed = DomainFixture(storefront)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(storefront_bed):
    get_settings.cache_clear()
    with storefront_bed.domain_context():
        yield

        from protean import current_domain

        # Clear all databases
        for _, provider in current_domain.providers.items():
            provider._data_reset()

        # Drain event stores
        current_domain.event_store.store._data_reset()

    reset_catalog()
    reset_order_service()
    reset_auth_provider()


# ---------------------------------------------------------------------------
# Catalog fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def textbook():
    return Product(
        id="prod-textbook",
        store_id="store-books",
        name="Intro to Economics",
        price=10000,
        quantity=10,
        store_name="Legon Books",
        store_slug="legon-books",
    )


@pytest.fixture()
def notebook():
    return Product(
        id="prod-notebook",
        store_id="store-books",
        name="A4 Notebook",
        price=1250,
        quantity=50,
        store_name="Legon Books",
        store_slug="legon-books",
    )


@pytest.fixture()
def jollof():
    return Product(
        id="prod-jollof",
        store_id="store-food",
        name="Jollof Pack",
        price=3500,
        quantity=20,
        store_name="Night Market",
        store_slug="night-market",
    )


@pytest.fixture()
def sold_out():
    return Product(
        id="prod-sold-out",
        store_id="store-books",
        name="Calculus Workbook",
        price=8000,
        quantity=0,
        store_name="Legon Books",
        store_slug="legon-books",
    )


@pytest.fixture()
def catalog(textbook, notebook, jollof, sold_out):
    catalog = InMemoryCatalog([textbook, notebook, jollof, sold_out])
    set_catalog(catalog)
    return catalog
