"""Shared fixtures for the settings registry tests."""

import pytest

from blight_settings import (
    LegacyBridge,
    MemoryByteStore,
    MemoryLegacyStore,
    PersistenceAdapter,
    Registry,
)


@pytest.fixture
def byte_store():
    """An empty in-memory byte store."""
    return MemoryByteStore()


@pytest.fixture
def registry(byte_store):
    """A loaded registry persisting into byte_store."""
    reg = Registry(PersistenceAdapter(byte_store))
    reg.load()
    return reg


@pytest.fixture
def legacy_store():
    """A legacy store with two flags."""
    return MemoryLegacyStore({"foo": True, "mouse": False})


@pytest.fixture
def legacy_registry(registry, legacy_store):
    """A registry with legacy flags imported under 'blight.'."""
    LegacyBridge(legacy_store).bootstrap(registry)
    return registry
