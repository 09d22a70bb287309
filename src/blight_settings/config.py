"""Configuration for wiring a registry to its stores."""

import os
from pathlib import Path
from typing import Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel

from .legacy import DEFAULT_PREFIX
from .storage import DEFAULT_SNAPSHOT_KEY


class RegistryConfig(BaseModel):
    """Where settings live and how legacy flags are imported."""
    data_dir: Path = Path("config")
    snapshot_key: str = DEFAULT_SNAPSHOT_KEY
    legacy_prefix: str = DEFAULT_PREFIX
    legacy_file: Optional[Path] = None  # None = no legacy import
    color: bool = True


def _expand_env_vars(obj):
    """Recursively expand ${VAR} patterns in strings."""
    if isinstance(obj, str):
        if obj.startswith("${") and obj.endswith("}"):
            return os.environ.get(obj[2:-1], "")
        return obj
    elif isinstance(obj, dict):
        return {k: _expand_env_vars(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_expand_env_vars(item) for item in obj]
    return obj


def load_config(
    config_path: Optional[Path] = None,
    env_path: Optional[Path] = None,
) -> RegistryConfig:
    """Load configuration from a YAML file and the environment.

    Args:
        config_path: Path to the YAML config (default: config/blight-settings.yaml).
        env_path: Path to a .env file (default: .env).

    Returns:
        Loaded RegistryConfig. Missing files yield defaults.
    """
    if env_path is None:
        env_path = Path(".env")
    if env_path.exists():
        load_dotenv(env_path)

    config_data = {}
    if config_path is None:
        config_path = Path("config/blight-settings.yaml")

    if config_path.exists():
        try:
            with open(config_path, encoding="utf-8") as f:
                config_data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Failed to parse {config_path}: {e}") from e

    if not isinstance(config_data, dict):
        raise ValueError(f"Config file {config_path} must contain a mapping")

    config_data = _expand_env_vars(config_data)
    # An expanded-but-unset ${VAR} means "not configured"
    if config_data.get("legacy_file") == "":
        config_data["legacy_file"] = None

    return RegistryConfig(**config_data)
