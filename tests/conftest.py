"""Pytest fixtures for NoticeShield tests."""

import pytest

from noticeshield.security.catalog import CatalogStore, CompiledCatalog, build_snapshot
from noticeshield.security.engine import ThreatEngine


@pytest.fixture(scope="session", autouse=True)
def setup_test_environment():
    """Clear the settings cache so every session starts from a fresh environment."""
    from noticeshield.config import get_settings

    get_settings.cache_clear()

    yield

    get_settings.cache_clear()


@pytest.fixture(scope="session")
def catalog() -> CompiledCatalog:
    """The compiled built-in catalog, shared read-only across tests."""
    return build_snapshot()


@pytest.fixture
def store(catalog: CompiledCatalog) -> CatalogStore:
    return CatalogStore(catalog)


@pytest.fixture
def engine(store: CatalogStore) -> ThreatEngine:
    """Engine over the built-in catalog with default limits and risk config."""
    return ThreatEngine(store)
