"""Startup wiring: persistence load, then legacy import."""

import logging
from typing import Optional

from .config import RegistryConfig
from .legacy import EnvLegacyStore, LegacyBridge, LegacyStore
from .registry import Registry
from .storage import ByteStore, FileByteStore, PersistenceAdapter

logger = logging.getLogger(__name__)


def open_registry(
    config: Optional[RegistryConfig] = None,
    *,
    store: Optional[ByteStore] = None,
    legacy_store: Optional[LegacyStore] = None,
) -> Registry:
    """Build a registry, load its snapshot and import legacy flags.

    Args:
        config: Wiring configuration (defaults apply when omitted).
        store: Byte store override; defaults to a FileByteStore on data_dir.
        legacy_store: Legacy store override; defaults to an EnvLegacyStore on
            legacy_file when one is configured.

    Returns:
        A registry ready for add/get/set calls.
    """
    config = config or RegistryConfig()

    if store is None:
        store = FileByteStore(config.data_dir)
    registry = Registry(PersistenceAdapter(store, config.snapshot_key))
    registry.load()

    if legacy_store is None and config.legacy_file is not None:
        legacy_store = EnvLegacyStore(config.legacy_file)
    if legacy_store is not None:
        LegacyBridge(legacy_store, config.legacy_prefix).bootstrap(registry)

    logger.debug(f"Settings registry ready with {len(registry.names())} setting(s)")
    return registry
