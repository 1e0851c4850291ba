"""Shared pytest fixtures for unit tests."""

from collections.abc import Generator

import pytest

from configuration import AppConfig
from tests.unit.utils.fake_store import FakeDataStore


@pytest.fixture(name="minimal_config")
def minimal_config_fixture() -> Generator[AppConfig, None, None]:
    """Create a minimal AppConfig with only required fields.

    The configuration singleton is restored after the test.

    Yields:
        AppConfig: Configuration with one provider and the in-memory cache.
    """
    cfg = AppConfig()
    # pylint: disable=protected-access
    previous = cfg._configuration
    cfg.init_from_dict(
        {
            "name": "test",
            "service": {"host": "localhost", "port": 8080},
            "llm": {"providers": [{"name": "google", "api_key": "test-key"}]},
        }
    )
    yield cfg
    cfg._configuration = previous


@pytest.fixture(name="store")
def store_fixture() -> FakeDataStore:
    """Record store with the default brands and outlets."""
    return FakeDataStore()
