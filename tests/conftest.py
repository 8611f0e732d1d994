import os
from pathlib import Path

import pytest


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_sessionstart(session):
    """Pytest hook to run before collecting tests.

    Select the config environment before any domain is imported. The ordering
    domain context is pushed by tests/ordering/conftest.py.
    """
    os.environ["PROTEAN_ENV"] = session.config.option.env


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        # Get the test file path relative to the tests directory
        test_path = Path(item.fspath)

        # Mark tests based on their directory
        if "/domain/" in str(test_path):
            item.add_marker(pytest.mark.domain)
        elif "/application/" in str(test_path):
            item.add_marker(pytest.mark.application)
        elif "/bdd/" in str(test_path):
            item.add_marker(pytest.mark.bdd)
        elif "/integration/" in str(test_path):
            item.add_marker(pytest.mark.integration)
            # Integration tests are often slower
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)


@pytest.fixture(autouse=True)
def reset_collaborators():
    """Swap every external collaborator for a fresh in-process fake."""
    from catalogue.lookup import reset_catalog, set_catalog
    from catalogue.lookup.memory_adapter import InMemoryCatalog
    from notifications.channel import reset_channels, set_live_channel
    from notifications.channel.fake_live import FakeLiveChannel
    from payments.gateway import reset_gateway, set_gateway
    from payments.gateway.fake_adapter import FakeGateway
    from ratelimit import reset_rate_limiter, set_rate_limiter
    from ratelimit.memory_adapter import InMemoryRateLimiter

    set_catalog(InMemoryCatalog())
    set_gateway(FakeGateway())
    set_live_channel(FakeLiveChannel())
    set_rate_limiter(InMemoryRateLimiter(limit=30, window_seconds=60))

    yield

    reset_catalog()
    reset_gateway()
    reset_channels()
    reset_rate_limiter()


@pytest.fixture()
def catalog():
    from catalogue.lookup import get_catalog

    return get_catalog()


@pytest.fixture()
def gateway():
    from payments.gateway import get_gateway

    return get_gateway()


@pytest.fixture()
def live_channel():
    from notifications.channel import get_live_channel

    return get_live_channel()
