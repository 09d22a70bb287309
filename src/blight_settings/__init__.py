"""Typed, pluggable settings registry.

Components register named settings with a type and a default; users read and
write them by name. Overrides persist across restarts, legacy boolean flags
are imported under the ``blight.`` namespace and kept in sync, and change
callbacks fire after every write.

Example usage:
    from blight_settings import open_registry

    registry = open_registry()
    registry.add("ui.width", "number", 80)
    registry.on_change("ui.width", lambda name, value: print(name, value))
    registry.set_from_text("ui.width", "120")
"""

from .bootstrap import open_registry
from .commands import SettingsCommands, TextColors
from .config import RegistryConfig, load_config
from .errors import (
    ConversionError,
    ListingNotImplementedError,
    PersistenceLoadError,
    SettingNotFoundError,
    SettingsError,
    UnknownTypeError,
)
from .legacy import (
    EnvLegacyStore,
    LegacyAliases,
    LegacyBridge,
    LegacyStore,
    MemoryLegacyStore,
)
from .registry import Registry
from .schema import Setting, SettingType, convert
from .storage import ByteStore, FileByteStore, MemoryByteStore, PersistenceAdapter

__all__ = [
    # Schema
    "SettingType",
    "Setting",
    "convert",
    # Registry
    "Registry",
    "open_registry",
    # Legacy
    "LegacyAliases",
    "LegacyBridge",
    "LegacyStore",
    "MemoryLegacyStore",
    "EnvLegacyStore",
    # Storage
    "ByteStore",
    "FileByteStore",
    "MemoryByteStore",
    "PersistenceAdapter",
    # Config
    "RegistryConfig",
    "load_config",
    # Commands
    "SettingsCommands",
    "TextColors",
    # Errors
    "SettingsError",
    "SettingNotFoundError",
    "ConversionError",
    "UnknownTypeError",
    "ListingNotImplementedError",
    "PersistenceLoadError",
]
