"""Tests for importing and mirroring legacy flags."""

import logging
from pathlib import Path

import pytest
from dotenv import dotenv_values

from blight_settings import (
    ConversionError,
    EnvLegacyStore,
    LegacyAliases,
    LegacyBridge,
    MemoryByteStore,
    MemoryLegacyStore,
    PersistenceAdapter,
    Registry,
    Setting,
    SettingType,
)


class TestLegacyAliases:
    """Tests for LegacyAliases."""

    def test_build_is_two_way(self):
        """Forward and reverse tables mirror each other."""
        aliases = LegacyAliases.build("blight", ["foo", "bar"])
        assert aliases.forward == {"blight.foo": "foo", "blight.bar": "bar"}
        assert aliases.reverse == {"foo": "blight.foo", "bar": "blight.bar"}

    def test_tables_are_read_only(self):
        """Alias tables cannot be mutated after construction."""
        aliases = LegacyAliases.build("blight", ["foo"])
        with pytest.raises(TypeError):
            aliases.forward["blight.x"] = "x"


class TestBootstrap:
    """Tests for LegacyBridge.bootstrap()."""

    def test_imports_flags_as_booleans(self, legacy_registry):
        """Each legacy flag becomes a boolean setting seeded from the store."""
        assert legacy_registry.type("blight.foo") is SettingType.BOOLEAN
        assert legacy_registry.get("blight.foo") is True
        assert legacy_registry.get("blight.mouse") is False

    def test_seeding_fires_nothing(self, registry, byte_store, legacy_store):
        """Seeding neither saves nor notifies."""
        calls = []
        registry.on_change("blight.foo", lambda name, value: calls.append(value))

        LegacyBridge(legacy_store).bootstrap(registry)

        assert calls == []
        assert byte_store.writes == 0
        assert legacy_store.writes == []

    def test_bootstrap_twice_fails(self, registry, legacy_store):
        """Alias tables are fixed after the first bootstrap."""
        LegacyBridge(legacy_store).bootstrap(registry)
        with pytest.raises(RuntimeError):
            LegacyBridge(MemoryLegacyStore({"other": True})).bootstrap(registry)
        assert "other" not in registry

    def test_custom_prefix(self, registry):
        """The namespace prefix is configurable."""
        LegacyBridge(MemoryLegacyStore({"foo": True}), prefix="old").bootstrap(registry)
        assert registry.get("old.foo") is True
        assert registry.resolve("foo") == "old.foo"

    def test_stale_snapshot_entry_is_replaced(self, caplog):
        """A persisted non-boolean entry under a legacy name yields to the flag."""
        store = MemoryByteStore()
        PersistenceAdapter(store).save({"blight.foo": Setting("blight.foo", "number", 3)})
        registry = Registry(PersistenceAdapter(store))
        registry.load()

        with caplog.at_level(logging.WARNING):
            LegacyBridge(MemoryLegacyStore({"foo": False})).bootstrap(registry)

        assert registry.type("blight.foo") is SettingType.BOOLEAN
        assert registry.get("blight.foo") is False
        assert "Replacing number setting 'blight.foo'" in caplog.text

    def test_bad_seed_leaves_registry_untouched(self, registry):
        """A non-boolean legacy value aborts the import before anything is added."""
        bridge = LegacyBridge(MemoryLegacyStore({"a": True, "b": "yes"}))

        with pytest.raises(ConversionError):
            bridge.bootstrap(registry)

        assert registry.names() == []
        assert bridge.aliases.forward == {}

    def test_seed_clears_persisted_default(self):
        """A boolean snapshot entry under a legacy name loses its stored default."""
        store = MemoryByteStore()
        PersistenceAdapter(store).save(
            {"blight.foo": Setting("blight.foo", "boolean", True, False)}
        )
        registry = Registry(PersistenceAdapter(store))
        registry.load()

        LegacyBridge(MemoryLegacyStore({"foo": True})).bootstrap(registry)
        registry.reset("foo")

        assert registry.get("blight.foo") is False


class TestMirroring:
    """Tests for writes on legacy-backed settings."""

    def test_set_new_name_mirrors_without_saving(self, legacy_registry, legacy_store, byte_store):
        """Writing blight.foo updates the registry and the legacy store only."""
        legacy_registry.set("blight.foo", False)

        assert legacy_registry.get("blight.foo") is False
        assert legacy_store.writes == [("foo", False)]
        assert byte_store.writes == 0

    def test_set_legacy_name_mirrors(self, legacy_registry, legacy_store, byte_store):
        """Writing through the legacy alias resolves and mirrors the same way."""
        legacy_registry.set("mouse", True)

        assert legacy_registry.get("blight.mouse") is True
        assert legacy_store.writes == [("mouse", True)]
        assert byte_store.writes == 0

    @pytest.mark.parametrize("written, other", [("blight.foo", "foo"), ("foo", "blight.foo")])
    def test_resolution_symmetry(self, legacy_registry, written, other):
        """Both names read the same value after either is set."""
        legacy_registry.set(written, False)
        assert legacy_registry.get(other) is False
        assert legacy_registry.get(written) is False

    def test_callbacks_use_name_as_given(self, legacy_registry):
        """Callbacks fire for the caller's name, not the resolved alias."""
        by_alias, by_new = [], []
        legacy_registry.on_change("foo", lambda name, value: by_alias.append((name, value)))
        legacy_registry.on_change("blight.foo", lambda name, value: by_new.append((name, value)))

        legacy_registry.set("foo", False)

        assert by_alias == [("foo", False)]
        assert by_new == []

    def test_reset_keeps_registry_and_store_in_step(self, legacy_registry, legacy_store):
        """Resetting a legacy flag stores, mirrors and reports the same value."""
        calls = []
        legacy_registry.on_change("foo", lambda name, value: calls.append(value))

        assert legacy_registry.reset("foo") is False

        assert legacy_registry.get("foo") is False
        assert legacy_registry.get("foo") == legacy_store.flags["foo"]
        assert legacy_store.writes == [("foo", False)]
        assert calls == [False]

    def test_snapshot_excludes_legacy(self, legacy_registry, byte_store):
        """Saved snapshots never contain legacy-backed settings."""
        legacy_registry.add("ui.width", "number", 80)
        legacy_registry.set("ui.width", 100)

        snapshot = PersistenceAdapter(byte_store).load()
        assert set(snapshot) == {"ui.width"}

    def test_is_legacy(self, legacy_registry):
        """is_legacy() answers for both names and is false otherwise."""
        legacy_registry.add("ui.width", "number", 80)
        assert legacy_registry.is_legacy("foo")
        assert legacy_registry.is_legacy("blight.foo")
        assert not legacy_registry.is_legacy("ui.width")
        assert not legacy_registry.is_legacy("nope")


class TestEnvLegacyStore:
    """Tests for the .env-format legacy flag file."""

    def test_list_parses_flags(self, tmp_path: Path, caplog):
        """on/off style values parse; garbage is skipped with a warning."""
        path = tmp_path / "flags.env"
        path.write_text("mouse=on\nhistory=false\nbroken=maybe\n", encoding="utf-8")

        with caplog.at_level(logging.WARNING):
            flags = EnvLegacyStore(path).list()

        assert flags == {"mouse": True, "history": False}
        assert "broken" in caplog.text

    def test_missing_file_is_empty(self, tmp_path: Path):
        """A missing file has no flags."""
        assert EnvLegacyStore(tmp_path / "none.env").list() == {}

    def test_set_preserves_other_lines(self, tmp_path: Path):
        """set() rewrites one flag and keeps the rest of the file."""
        path = tmp_path / "flags.env"
        path.write_text("# legacy flags\nmouse=on\nhistory=off\n", encoding="utf-8")

        EnvLegacyStore(path).set("mouse", False)

        assert dotenv_values(path) == {"mouse": "off", "history": "off"}
        assert path.read_text(encoding="utf-8").startswith("# legacy flags")

    def test_bridge_round_trip_through_file(self, tmp_path: Path):
        """A write through the registry lands in the flag file."""
        path = tmp_path / "flags.env"
        path.write_text("mouse=on\n", encoding="utf-8")
        registry = Registry()
        LegacyBridge(EnvLegacyStore(path)).bootstrap(registry)

        registry.set("mouse", False)

        assert EnvLegacyStore(path).list() == {"mouse": False}
