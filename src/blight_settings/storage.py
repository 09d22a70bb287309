"""Storage backends for settings persistence.

This module provides byte-oriented stores (one blob per key) and the
PersistenceAdapter that snapshots registry settings into such a store as YAML.

Example snapshot:
    ui.width:
      type: number
      default: 80
      current: 120
    ui.theme:
      type: string
      default: dark
      current: null
"""

import logging
from pathlib import Path
from typing import Dict, Mapping, Protocol

import yaml

from .errors import PersistenceLoadError, SettingsError
from .schema import Setting

logger = logging.getLogger(__name__)

DEFAULT_SNAPSHOT_KEY = "settings.settings"


class ByteStore(Protocol):
    """Raw bytes stored under a key."""

    def disk_write(self, key: str, data: bytes) -> None: ...

    def disk_read(self, key: str) -> bytes: ...


class FileByteStore:
    """Directory-backed store with one file per key.

    A key that was never written reads as empty bytes.
    """

    def __init__(self, directory: Path):
        """Initialize file storage.

        Args:
            directory: Directory holding one file per key.
        """
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        """Get the storage directory."""
        return self._directory

    def path_for(self, key: str) -> Path:
        """Get the file path used for a key."""
        if not key or "/" in key or "\\" in key or key in (".", ".."):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self._directory / key

    def disk_write(self, key: str, data: bytes) -> None:
        """Replace the bytes stored under key.

        The write goes to a temporary file in the same directory followed by
        ``replace``, so a crash never leaves a partial snapshot.
        """
        path = self.path_for(key)
        self._directory.mkdir(parents=True, exist_ok=True)
        temp_path = path.with_name(f"{path.name}.tmp")

        try:
            temp_path.write_bytes(data)
            temp_path.replace(path)
        except Exception:
            temp_path.unlink(missing_ok=True)
            raise

    def disk_read(self, key: str) -> bytes:
        """Read the bytes stored under key (empty if never written)."""
        path = self.path_for(key)
        if not path.exists():
            return b""
        return path.read_bytes()


class MemoryByteStore:
    """In-memory byte store, mostly for tests and embedding."""

    def __init__(self, data: Dict[str, bytes] = None):
        self.data: Dict[str, bytes] = dict(data or {})
        self.writes = 0

    def disk_write(self, key: str, data: bytes) -> None:
        self.data[key] = bytes(data)
        self.writes += 1

    def disk_read(self, key: str) -> bytes:
        return self.data.get(key, b"")


class PersistenceAdapter:
    """Snapshot settings to and from a ByteStore under a fixed key.

    Example:
        adapter = PersistenceAdapter(FileByteStore(Path("config")))
        settings = adapter.load()
        adapter.save(settings)
    """

    def __init__(self, store: ByteStore, key: str = DEFAULT_SNAPSHOT_KEY):
        """Initialize the adapter.

        Args:
            store: Byte store collaborator.
            key: Storage key holding the snapshot.
        """
        self._store = store
        self._key = key

    @property
    def key(self) -> str:
        """Get the snapshot storage key."""
        return self._key

    def save(self, settings: Mapping[str, Setting]) -> None:
        """Serialize settings and write them under the snapshot key.

        Args:
            settings: Name -> Setting mapping to persist. Callers pass only
                the settings the registry itself owns.

        Raises:
            OSError: If the store fails to write.
        """
        snapshot = {name: setting.to_dict() for name, setting in settings.items()}
        data = yaml.safe_dump(
            snapshot, default_flow_style=False, sort_keys=True, allow_unicode=True
        )
        self._store.disk_write(self._key, data.encode("utf-8"))
        logger.debug(f"Saved {len(snapshot)} setting(s) to '{self._key}'")

    def load(self) -> Dict[str, Setting]:
        """Read the snapshot back.

        A missing, empty or corrupt snapshot yields an empty mapping; the
        failure is logged, never raised.

        Returns:
            Name -> Setting mapping.
        """
        try:
            return self._decode(self._read())
        except PersistenceLoadError as e:
            logger.warning(f"{e.message}; starting with empty settings")
            return {}

    def _read(self) -> bytes:
        try:
            return self._store.disk_read(self._key)
        except OSError as e:
            raise PersistenceLoadError(self._key, str(e)) from e

    def _decode(self, raw: bytes) -> Dict[str, Setting]:
        """Decode snapshot bytes.

        Raises:
            PersistenceLoadError: If the bytes are not a valid snapshot.
        """
        if not raw or not raw.strip():
            logger.debug(f"No stored settings under '{self._key}'")
            return {}

        try:
            data = yaml.safe_load(raw.decode("utf-8"))
        except (UnicodeDecodeError, yaml.YAMLError) as e:
            raise PersistenceLoadError(self._key, str(e)) from e

        if not isinstance(data, dict):
            raise PersistenceLoadError(
                self._key, f"expected a mapping, got {type(data).__name__}"
            )

        settings: Dict[str, Setting] = {}
        for name, entry in data.items():
            if not isinstance(name, str) or not isinstance(entry, dict):
                raise PersistenceLoadError(self._key, f"malformed entry {name!r}")
            try:
                settings[name] = Setting.from_dict(name, entry)
            except SettingsError as e:
                raise PersistenceLoadError(self._key, f"{name}: {e.message}") from e
        return settings
