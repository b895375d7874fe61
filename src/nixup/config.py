"""Configuration model for nixup.

NixupConfig holds every path, flake target and command knob the update
session needs. Values come from (lowest to highest precedence) the model
defaults, an optional TOML file and explicit overrides passed by the CLI.
"""

from __future__ import annotations

import os
import tomllib
from typing import Any, Optional

from pydantic import BaseModel, ValidationError, field_validator

from nixup.exceptions import ConfigError

DEFAULT_CONFIG_PATH = "~/.config/nixup/config.toml"

_PATH_FIELDS = (
    "log_dir",
    "txr_command",
    "repo_path",
    "flake_path",
    "nixos_path",
    "home_manager_path",
    "disk_path",
)


class NixupConfig(BaseModel):
    """Settings for one update session."""

    model_config = {"extra": "forbid", "frozen": True, "validate_default": True}

    log_dir: str = "~/documents/nixos-update-logs"
    txr_command: str = "~/.local/bin/txr"
    repo_path: str = "~/repos/NixOS-config"
    flake_path: str = "~/repos/NixOS-config/nixos"
    nixos_path: str = "/persist/etc/nixos"
    nixos_target: str = "nixbox"
    home_manager_path: str = "~/.config/home-manager"
    home_manager_target: str = "crackz"
    gc_older_than: str = "30d"
    delete_generations: str = "old"
    disk_path: str = "/"
    sudo: bool = True
    extra_experimental_features: str = "nix-command flakes"

    @field_validator(*_PATH_FIELDS)
    @classmethod
    def _expand_user(cls, value: str) -> str:
        return os.path.expanduser(value)

    @field_validator("nixos_target", "home_manager_target", "gc_older_than")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be empty")
        return value

    def flake_ref(self, target: str) -> str:
        """Return the flake reference for a local flake output, e.g. ``.#nixbox``."""
        return f".#{target}"


def _read_toml(path: str) -> dict[str, Any]:
    try:
        with open(path, "rb") as fh:
            return tomllib.load(fh)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid config file {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e.strerror}") from e


def load_config(
    path: Optional[str] = None,
    overrides: Optional[dict[str, Any]] = None,
) -> NixupConfig:
    """Build a NixupConfig from an optional TOML file plus overrides.

    Args:
        path: Config file to read. When None, the default location is used
            if it exists; an explicitly given path must exist.
        overrides: Field values that win over the file. None values are
            ignored so CLI options left unset do not clobber the file.

    Raises:
        ConfigError: The file is unreadable, not valid TOML, or contains
            unknown keys or values of the wrong type.
    """
    data: dict[str, Any] = {}

    if path is not None:
        data = _read_toml(os.path.expanduser(path))
    else:
        default_path = os.path.expanduser(DEFAULT_CONFIG_PATH)
        if os.path.exists(default_path):
            data = _read_toml(default_path)

    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})

    try:
        return NixupConfig(**data)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'config'}: {err['msg']}"
            for err in e.errors()
        )
        raise ConfigError(f"Invalid configuration: {problems}") from None
