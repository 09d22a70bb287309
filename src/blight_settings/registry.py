"""Central settings registry.

This module provides the Registry class: a flat map from setting name to
Setting that components register into and users read and write by name.
Overrides persist through a PersistenceAdapter, legacy-backed settings are
mirrored through a LegacyBridge, and change callbacks fire after every write.
"""

import logging
import threading
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Mapping, Optional, Tuple, Union

from .errors import ListingNotImplementedError, SettingNotFoundError
from .schema import Setting, SettingType, Value, convert
from .storage import PersistenceAdapter

if TYPE_CHECKING:
    from .legacy import LegacyBridge

logger = logging.getLogger(__name__)

ChangeCallback = Callable[[str, Any], None]
InitCallback = Callable[[], None]


class Registry:
    """Typed settings registry with legacy aliasing and change callbacks.

    All state (settings, alias tables, callback lists) is guarded by one
    re-entrant lock. Callbacks run on the caller's thread after the write has
    been persisted or mirrored, outside the lock.

    Example:
        registry = Registry(PersistenceAdapter(FileByteStore(Path("config"))))
        registry.load()

        registry.add("ui.width", "number", 80)
        registry.on_change("ui.width", lambda name, value: print(name, value))
        registry.set("ui.width", 120)
        registry.get("ui.width")  # 120
    """

    def __init__(self, persistence: Optional[PersistenceAdapter] = None):
        """Initialize an empty registry.

        Args:
            persistence: Adapter used to save the registry's own settings.
                Without one, writes live only in memory.
        """
        self._persistence = persistence
        self._lock = threading.RLock()

        self._settings: Dict[str, Setting] = {}
        self._legacy: Optional["LegacyBridge"] = None

        self._change_callbacks: Dict[str, List[ChangeCallback]] = {}
        self._init_callbacks: List[InitCallback] = []

    # ─────────────────────────────────────────────────────────────────
    # Lifecycle
    # ─────────────────────────────────────────────────────────────────

    def load(self) -> int:
        """Replace the settings map with the persisted snapshot.

        A missing or corrupt snapshot leaves the registry empty.

        Returns:
            Number of settings loaded.
        """
        if self._persistence is None:
            return 0
        loaded = self._persistence.load()
        with self._lock:
            self._settings = dict(loaded)
        logger.debug(f"Loaded {len(loaded)} setting(s)")
        return len(loaded)

    def save(self) -> bool:
        """Persist every setting that is not legacy-backed.

        Save failures are logged as warnings, never raised.

        Returns:
            True if the snapshot was written (or there is nowhere to write).
        """
        if self._persistence is None:
            return True
        with self._lock:
            owned = {
                name: setting
                for name, setting in self._settings.items()
                if not self._is_legacy(name)
            }
            try:
                self._persistence.save(owned)
            except (OSError, ValueError) as e:
                logger.warning(f"Failed to save settings: {e}")
                return False
        return True

    def bind_legacy(self, bridge: "LegacyBridge", seeds: Mapping[str, bool]) -> None:
        """Install a legacy bridge and seed its imported settings.

        Called once by LegacyBridge.bootstrap(). Seeds set ``current``
        directly: no callbacks fire and nothing is persisted.

        Args:
            bridge: Bridge owning the alias tables and the legacy store.
            seeds: New namespaced name -> legacy value.

        Raises:
            RuntimeError: If a bridge is already bound.
        """
        with self._lock:
            if self._legacy is not None:
                raise RuntimeError("A legacy bridge is already bound to this registry")

            # Validate everything first so a bad seed leaves the map untouched
            checked = {
                name: SettingType.BOOLEAN.check(value) for name, value in seeds.items()
            }

            for name, value in checked.items():
                existing = self._settings.get(name)
                if existing is not None and existing.type is not SettingType.BOOLEAN:
                    logger.warning(
                        f"Replacing {existing.type.value} setting '{name}' "
                        f"with legacy boolean"
                    )
                self._settings[name] = Setting(name, SettingType.BOOLEAN, None, value)

            self._legacy = bridge

    # ─────────────────────────────────────────────────────────────────
    # Registration
    # ─────────────────────────────────────────────────────────────────

    def add(
        self,
        name: str,
        setting_type: Union[SettingType, str],
        default: Optional[Value] = None,
    ) -> None:
        """Register a setting, or refresh the default of an existing one.

        Re-registering never touches ``current``. A re-registration with a
        different type is ignored (with a warning): the first declared type
        stays authoritative and the default is left as it was.

        Args:
            name: Setting name.
            setting_type: Declared type, as SettingType or tag string.
            default: Default value, or None for no default.

        Raises:
            UnknownTypeError: If the type tag is not supported.
            ConversionError: If the default does not match the type.
        """
        typ = SettingType.parse(setting_type)
        if default is not None:
            typ.check(default)

        with self._lock:
            existing = self._settings.get(name)
            if existing is None:
                self._settings[name] = Setting(name, typ, default)
                logger.debug(f"Registered setting '{name}' ({typ.value})")
                return

            if existing.type is not typ:
                logger.warning(
                    f"Setting '{name}' is already registered as "
                    f"{existing.type.value}; ignoring re-registration as {typ.value}"
                )
                return
            existing.default = default

    # ─────────────────────────────────────────────────────────────────
    # Value Access
    # ─────────────────────────────────────────────────────────────────

    def resolve(self, name: str) -> str:
        """Resolve a name or legacy alias to the registered setting name.

        Raises:
            SettingNotFoundError: If the name resolves to nothing.
        """
        with self._lock:
            return self._resolve(name)[0]

    def get(self, name: str) -> Optional[Value]:
        """Get the effective value: the override, else the default.

        Args:
            name: Setting name or legacy alias.

        Returns:
            The value, or None when neither override nor default exists.

        Raises:
            SettingNotFoundError: If the name resolves to nothing.
        """
        with self._lock:
            return self._resolve(name)[1].value

    def type(self, name: str) -> SettingType:
        """Get the declared type of a setting.

        Raises:
            SettingNotFoundError: If the name resolves to nothing.
        """
        with self._lock:
            return self._resolve(name)[1].type

    def set(self, name: str, value: Value) -> None:
        """Override a setting.

        Legacy-backed settings are mirrored to the legacy store; all others
        are saved. Callbacks registered for ``name`` exactly as given then
        run in registration order.

        Args:
            name: Setting name or legacy alias.
            value: New value; must match the declared type.

        Raises:
            SettingNotFoundError: If the name resolves to nothing.
            ConversionError: If the value does not match the declared type.
        """
        with self._lock:
            resolved, setting = self._resolve(name)
            setting.type.check(value)
            setting.current = value
            self._store(resolved, value)
            callbacks = list(self._change_callbacks.get(name, ()))

        self._dispatch(name, value, callbacks)

    def set_from_text(self, name: str, raw: str) -> Value:
        """Convert text to the setting's type and set it.

        Returns:
            The converted value that was stored.

        Raises:
            SettingNotFoundError: If the name resolves to nothing.
            ConversionError: If the text does not convert.
        """
        value = convert(raw, self.type(name))
        self.set(name, value)
        return value

    def reset(self, name: str) -> Optional[Value]:
        """Drop the override so the default applies again.

        Returns:
            The effective value after the reset.

        Raises:
            SettingNotFoundError: If the name resolves to nothing.
        """
        with self._lock:
            resolved, setting = self._resolve(name)
            setting.current = None
            if self._is_legacy(resolved):
                # The legacy store has no "unset"; pin the flag it will hold
                setting.current = bool(setting.value)
            value = setting.value
            self._store(resolved, value)
            callbacks = list(self._change_callbacks.get(name, ()))

        self._dispatch(name, value, callbacks)
        return value

    def list(self, name: Optional[str] = None) -> Dict[str, Optional[Value]]:
        """Get every setting's effective value, sorted by name.

        Args:
            name: Unsupported; must be None.

        Raises:
            ListingNotImplementedError: If a name is given.
        """
        if name is not None:
            raise ListingNotImplementedError(name)
        with self._lock:
            return {key: self._settings[key].value for key in sorted(self._settings)}

    def names(self) -> List[str]:
        """Get all registered setting names, sorted."""
        with self._lock:
            return sorted(self._settings)

    def is_legacy(self, name: str) -> bool:
        """Check whether a name (or alias) resolves to a legacy-backed setting."""
        with self._lock:
            try:
                resolved, _ = self._resolve(name)
            except SettingNotFoundError:
                return False
            return self._is_legacy(resolved)

    def __contains__(self, name: object) -> bool:
        if not isinstance(name, str):
            return False
        with self._lock:
            try:
                self._resolve(name)
            except SettingNotFoundError:
                return False
            return True

    # ─────────────────────────────────────────────────────────────────
    # Events
    # ─────────────────────────────────────────────────────────────────

    def on_change(self, name: str, callback: ChangeCallback) -> None:
        """Register a callback for writes to a name.

        The setting need not exist yet. Callbacks are keyed by the name the
        writer uses, so a callback on ``blight.foo`` does not fire for a
        write through its legacy alias ``foo``.

        Args:
            name: Setting name (or alias) to watch.
            callback: Function(name, value) called after each write.
        """
        with self._lock:
            self._change_callbacks.setdefault(name, []).append(callback)

    def on_init(self, callback: InitCallback) -> None:
        """Queue a callback to run once startup registration is complete.

        The host decides when that is and calls run_init_callbacks().
        """
        with self._lock:
            self._init_callbacks.append(callback)

    def run_init_callbacks(self) -> int:
        """Run and clear the queued init callbacks, in registration order.

        Returns:
            Number of callbacks run.
        """
        with self._lock:
            callbacks = self._init_callbacks
            self._init_callbacks = []

        for callback in callbacks:
            try:
                callback()
            except Exception:
                logger.exception("Settings init callback failed")
        return len(callbacks)

    # ─────────────────────────────────────────────────────────────────
    # Internals
    # ─────────────────────────────────────────────────────────────────

    def _resolve(self, name: str) -> Tuple[str, Setting]:
        """Look up name directly, then through the reverse legacy alias."""
        setting = self._settings.get(name)
        if setting is not None:
            return name, setting

        if self._legacy is not None:
            redirect = self._legacy.aliases.reverse.get(name)
            if redirect is not None:
                setting = self._settings.get(redirect)
                if setting is not None:
                    return redirect, setting

        raise SettingNotFoundError(name)

    def _is_legacy(self, resolved: str) -> bool:
        return self._legacy is not None and self._legacy.is_legacy(resolved)

    def _store(self, resolved: str, value: Optional[Value]) -> None:
        """Mirror a legacy-backed write, or save the registry snapshot."""
        if not self._is_legacy(resolved):
            self.save()
            return
        try:
            self._legacy.mirror(resolved, value)
        except OSError as e:
            logger.warning(f"Failed to mirror '{resolved}' to legacy store: {e}")

    def _dispatch(self, name: str, value: Any, callbacks: List[ChangeCallback]) -> None:
        for callback in callbacks:
            try:
                callback(name, value)
            except Exception as e:
                logger.warning(f"Settings callback for '{name}' failed: {e}")
