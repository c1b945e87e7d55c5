import os

import pytest

# Test layer -> marker, keyed by the directory a test module lives in
_LAYER_MARKERS = {
    "domain": pytest.mark.domain,
    "application": pytest.mark.application,
    "integration": pytest.mark.integration,
    "bdd": pytest.mark.bdd,
}


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Protean config overlay to load (PROTEAN_ENV)",
    )


def pytest_sessionstart(session):
    """Select the config overlay and adapters before any domain module is imported.

    The ordering domain itself is initialized by the DomainFixture in
    tests/ordering/conftest.py.
    """
    os.environ["PROTEAN_ENV"] = session.config.option.env
    os.environ.setdefault("PAYMENT_PROVIDER", "fake")
    os.environ.setdefault("CACHE_URL", "memory://")


def pytest_collection_modifyitems(config, items):
    for item in items:
        layer = next((part for part in item.path.parts if part in _LAYER_MARKERS), None)
        if layer is None:
            continue
        item.add_marker(_LAYER_MARKERS[layer])
        if layer in ("integration", "bdd") and item.get_closest_marker("fast") is None:
            item.add_marker(pytest.mark.slow)
