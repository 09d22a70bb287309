"""blight-settings CLI entry point.

Usage:
    blight-settings list                          # List all settings
    blight-settings set ui.width                  # Show one setting
    blight-settings set ui.width 120              # Convert and set a value
    blight-settings reset ui.width                # Drop the override
    blight-settings --legacy-file flags.env list  # Include legacy flags
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from .bootstrap import open_registry
from .commands import SettingsCommands, TextColors
from .config import load_config
from .errors import SettingNotFoundError

# Exit codes
EXIT_SUCCESS = 0
EXIT_ERROR = 1
EXIT_CONFIG_ERROR = 3


def configure_logging(verbose: bool) -> None:
    """Configure logging based on flags."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def _build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="blight-settings",
        description="List, read and write persisted settings.",
    )

    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="YAML config file (default: config/blight-settings.yaml).",
    )
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=None,
        help="Directory holding the settings snapshot (overrides config).",
    )
    parser.add_argument(
        "--legacy-file",
        type=Path,
        default=None,
        help="Legacy flag file to import (overrides config).",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable ANSI colors.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show debug logs.",
    )

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("list", help="List all settings.")
    set_parser = sub.add_parser("set", help="Show or set one setting.")
    set_parser.add_argument("key")
    set_parser.add_argument("value", nargs="?")
    reset_parser = sub.add_parser("reset", help="Reset a setting to its default.")
    reset_parser.add_argument("key")

    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    return _build_parser().parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Run the CLI.

    Returns:
        Exit code.
    """
    args = parse_args(argv)
    configure_logging(args.verbose)

    try:
        config = load_config(args.config)
    except (OSError, ValueError, ValidationError) as e:
        print(f"Error: Invalid configuration: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    updates = {}
    if args.data_dir is not None:
        updates["data_dir"] = args.data_dir
    if args.legacy_file is not None:
        updates["legacy_file"] = args.legacy_file
    if args.no_color:
        updates["color"] = False
    config = config.model_copy(update=updates)

    registry = open_registry(config)
    commands = SettingsCommands(
        registry, colors=TextColors() if config.color else TextColors.plain()
    )

    if args.command == "list":
        return commands.list_settings()
    if args.command == "set":
        tokens = [args.key] if args.value is None else [args.key, args.value]
        return commands.get_or_set(tokens)

    try:
        registry.reset(args.key)
    except SettingNotFoundError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return EXIT_ERROR
    return commands.get_or_set([args.key])


if __name__ == "__main__":
    sys.exit(main())
