import pytest
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def ordering_bed():
    from ordering.domain import ordering

    bed = DomainFixture(ordering)
    bed.setup()
    yield bed
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


@pytest.fixture(autouse=True)
def payment_provider():
    """A fresh fake payment provider for every test."""
    from ordering.gateway import reset_provider, set_provider
    from ordering.gateway.fake_adapter import FakePaymentProvider

    provider = FakePaymentProvider()
    set_provider(provider)
    yield provider
    reset_provider()


@pytest.fixture(autouse=True)
def catalog_cache():
    """A fresh in-memory catalog cache for every test."""
    from ordering.cache import reset_cache, set_cache
    from ordering.cache.memory_adapter import InMemoryCatalogCache

    cache = InMemoryCatalogCache()
    set_cache(cache)
    yield cache
    reset_cache()


@pytest.fixture()
def settings_env(monkeypatch):
    """Set environment variables and reload settings; restored afterwards."""
    from ordering.config import get_settings

    def _apply(**values):
        for key, value in values.items():
            monkeypatch.setenv(key, str(value))
        get_settings.cache_clear()
        return get_settings()

    yield _apply
    get_settings.cache_clear()
