"""Bridge from the legacy boolean flag store into the registry.

At startup every legacy flag ``foo`` is imported as the boolean setting
``blight.foo``. Afterwards both names resolve to the same setting, and writes
to it are mirrored back into the legacy store instead of the registry's own
snapshot.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING, Dict, Iterable, Mapping, Optional, Protocol

from dotenv import dotenv_values, set_key

from .errors import ConversionError
from .schema import SettingType, convert

if TYPE_CHECKING:
    from .registry import Registry

logger = logging.getLogger(__name__)

DEFAULT_PREFIX = "blight"


class LegacyStore(Protocol):
    """The key/value flag store being migrated away from."""

    def list(self) -> Mapping[str, bool]: ...

    def set(self, name: str, value: bool) -> None: ...


class MemoryLegacyStore:
    """In-memory legacy store; records every write it receives."""

    def __init__(self, flags: Mapping[str, bool] = None):
        self.flags: Dict[str, bool] = dict(flags or {})
        self.writes: list[tuple[str, bool]] = []

    def list(self) -> Dict[str, bool]:
        return dict(self.flags)

    def set(self, name: str, value: bool) -> None:
        self.flags[name] = value
        self.writes.append((name, value))


class EnvLegacyStore:
    """Legacy flags kept in a .env-format file.

    Example file:
        mouse_enabled=on
        save_history=off
    """

    def __init__(self, path: Path):
        """Initialize the store.

        Args:
            path: Path to the flag file. It need not exist yet.
        """
        self._path = Path(path)

    @property
    def path(self) -> Path:
        """Get the flag file path."""
        return self._path

    def list(self) -> Dict[str, bool]:
        """Read every flag that parses as a boolean.

        Returns:
            Flag name -> value. Unparseable entries are skipped.
        """
        if not self._path.exists():
            return {}

        flags: Dict[str, bool] = {}
        for name, raw in dotenv_values(self._path).items():
            try:
                flags[name] = convert((raw or "").strip(), SettingType.BOOLEAN)
            except ConversionError:
                logger.warning(f"Ignoring legacy flag '{name}' with value {raw!r}")
        return flags

    def set(self, name: str, value: bool) -> None:
        """Write one flag, preserving the rest of the file."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.touch(exist_ok=True)
        set_key(self._path, name, "on" if value else "off", quote_mode="never")


@dataclass(frozen=True)
class LegacyAliases:
    """Immutable two-way name mapping between new and legacy names.

    Attributes:
        prefix: Namespace prepended to legacy names.
        forward: New namespaced name -> legacy name.
        reverse: Legacy name -> new namespaced name.
    """

    prefix: str
    forward: Mapping[str, str]
    reverse: Mapping[str, str]

    @classmethod
    def build(cls, prefix: str, legacy_names: Iterable[str]) -> "LegacyAliases":
        """Build both tables from the full set of legacy names."""
        forward: Dict[str, str] = {}
        reverse: Dict[str, str] = {}
        for legacy_name in legacy_names:
            new_name = f"{prefix}.{legacy_name}"
            forward[new_name] = legacy_name
            reverse[legacy_name] = new_name
        return cls(prefix, MappingProxyType(forward), MappingProxyType(reverse))


class LegacyBridge:
    """Imports legacy flags into a registry and mirrors writes back.

    Example:
        registry = Registry(PersistenceAdapter(store))
        registry.load()
        LegacyBridge(EnvLegacyStore(Path("flags.env"))).bootstrap(registry)
        registry.get("mouse_enabled") == registry.get("blight.mouse_enabled")
    """

    def __init__(self, store: LegacyStore, prefix: str = DEFAULT_PREFIX):
        self._store = store
        self._prefix = prefix
        self._aliases: Optional[LegacyAliases] = None

    @property
    def prefix(self) -> str:
        return self._prefix

    @property
    def aliases(self) -> LegacyAliases:
        """Alias tables; empty until bootstrap() has run."""
        if self._aliases is None:
            return LegacyAliases.build(self._prefix, ())
        return self._aliases

    def bootstrap(self, registry: "Registry") -> LegacyAliases:
        """Import every legacy flag and bind this bridge to the registry.

        Seeding does not fire change callbacks and does not persist.

        Args:
            registry: Registry, already loaded from persistence.

        Returns:
            The alias tables that were installed.

        Raises:
            RuntimeError: If this bridge or the registry is already bound.
        """
        if self._aliases is not None:
            raise RuntimeError("Legacy bridge already bootstrapped")

        values = self._store.list()
        aliases = LegacyAliases.build(self._prefix, values)
        seeds = {aliases.reverse[name]: value for name, value in values.items()}

        self._aliases = aliases
        try:
            registry.bind_legacy(self, seeds)
        except Exception:
            self._aliases = None
            raise

        logger.debug(f"Imported {len(seeds)} legacy setting(s) under '{self._prefix}.'")
        return aliases

    def is_legacy(self, name: str) -> bool:
        """Check whether a new-namespace name is backed by the legacy store."""
        return name in self.aliases.forward

    def mirror(self, name: str, value: bool) -> None:
        """Forward a write on a legacy-backed name to the legacy store."""
        legacy_name = self.aliases.forward[name]
        self._store.set(legacy_name, value)
        logger.debug(f"Mirrored {name} -> legacy '{legacy_name}' = {value}")
