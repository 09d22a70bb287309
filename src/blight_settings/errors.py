"""Error types for the settings registry.

Every error carries a human-readable message plus a ``details`` dict so the
command layer can print a user-facing line without parsing the message.
"""

from typing import Any


class SettingsError(Exception):
    """Base exception for all settings registry errors."""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class SettingNotFoundError(SettingsError):
    """Raised when a name resolves through neither the registry nor a legacy alias."""

    def __init__(self, name: str):
        super().__init__(f"Setting not found: {name}", {"name": name})
        self.name = name


class ConversionError(SettingsError, ValueError):
    """Raised when a value cannot be converted to a setting's declared type."""

    def __init__(self, value: Any, type_name: str, reason: str = None):
        message = f"Could not convert to {type_name}: {value}"
        details = {"value": value, "type": type_name}
        if reason:
            details["reason"] = reason
            message += f" ({reason})"
        super().__init__(message, details)
        self.value = value
        self.type_name = type_name


class UnknownTypeError(SettingsError, ValueError):
    """Raised when a declared type is not number, boolean or string."""

    def __init__(self, type_name: Any):
        super().__init__(f"Unknown value type: {type_name}", {"type": type_name})
        self.type_name = type_name


class ListingNotImplementedError(SettingsError, NotImplementedError):
    """Raised when list() is asked for a single setting."""

    def __init__(self, name: str):
        super().__init__(
            f"Listing a single setting is not implemented: {name}",
            {"name": name},
        )
        self.name = name


class PersistenceLoadError(SettingsError):
    """Raised when a stored snapshot cannot be deserialized.

    Never escapes the persistence layer: a missing or corrupt snapshot is
    treated as a first run.
    """

    def __init__(self, key: str, reason: str):
        super().__init__(
            f"Failed to load settings snapshot '{key}': {reason}",
            {"key": key, "reason": reason},
        )
        self.key = key
