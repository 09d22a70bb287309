"""Text commands for listing, reading and writing settings.

Implements the two user-facing commands a host routes into the registry:

    /settings            list every setting
    /set key [value]     print one setting, or convert and set it
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, List, Union

from .errors import ConversionError, SettingNotFoundError
from .registry import Registry

KEY_WIDTH = 40
PREFIX = "[**]"
USAGE = f"{PREFIX} Usage: /set key [value]"


@dataclass
class TextColors:
    """ANSI color codes for command output."""

    reset: str = "\033[0m"
    yellow: str = "\033[33m"
    red: str = "\033[31m"
    bold_green: str = "\033[1;32m"
    bold_red: str = "\033[1;31m"

    @classmethod
    def plain(cls) -> "TextColors":
        """A palette that emits no escape codes."""
        return cls(reset="", yellow="", red="", bold_green="", bold_red="")


class SettingsCommands:
    """Render registry state for a terminal and apply /set commands.

    Args:
        registry: The registry commands operate on.
        colors: Optional ANSI palette override.
        write: Line sink, print by default.
    """

    def __init__(
        self,
        registry: Registry,
        colors: TextColors | None = None,
        write: Callable[[str], None] = print,
    ) -> None:
        self._registry = registry
        self._colors = colors or TextColors()
        self._write = write

    def format_value(self, value: Any) -> str:
        """Render a value: on/off for booleans, raw text otherwise."""
        c = self._colors
        if value is True:
            return f"{c.bold_green}on{c.reset}"
        if value is False:
            return f"{c.bold_red}off{c.reset}"
        if value is None:
            return f"{c.yellow}(not set){c.reset}"
        return f"{c.yellow}{value}{c.reset}"

    def format_line(self, key: str, value: Any, pad: bool = True) -> str:
        """Render one ``[**] key => value`` line."""
        c = self._colors
        key_text = f"{key:<{KEY_WIDTH}}" if pad else key
        return f"{PREFIX} {c.yellow}{key_text}{c.reset} => {self.format_value(value)}"

    def list_settings(self) -> int:
        """Print every setting, sorted by name (the /settings command)."""
        listing = self._registry.list()
        for key in sorted(listing):
            self._write(self.format_line(key, listing[key]))
        return 0

    def get_or_set(self, args: Union[str, List[str]]) -> int:
        """Handle ``/set key [value]``.

        Args:
            args: Raw argument text, or already-split tokens.

        Returns:
            0 on success, 1 on a usage, lookup or conversion error.
        """
        tokens = args.split() if isinstance(args, str) else list(args)
        if len(tokens) == 0 or len(tokens) > 2:
            self._write(USAGE)
            return 1

        key = tokens[0]
        if len(tokens) == 1:
            return self._show(key)
        return self._assign(key, tokens[1])

    def _show(self, key: str) -> int:
        try:
            value = self._registry.get(key)
        except SettingNotFoundError:
            self._error(f"Unknown setting: {key}")
            return 1
        self._write(self.format_line(key, value, pad=False))
        return 0

    def _assign(self, key: str, raw: str) -> int:
        try:
            typ = self._registry.type(key)
        except SettingNotFoundError:
            self._error(f"Unknown setting: {key}")
            return 1
        try:
            self._registry.set_from_text(key, raw)
        except ConversionError:
            self._error(f"Could not convert to {typ.value}: {raw}")
            return 1
        return 0

    def _error(self, message: str) -> None:
        c = self._colors
        self._write(f"{PREFIX} {c.red}{message}{c.reset}")
