"""Helpers for resolving build configuration files into BundleOptions."""

import json
import os
import re
from typing import Any, Dict, Mapping, Optional

from bundler.options import BundleOptions

DEFAULT_CONFIG_NAME = "standalone.config.json"
CONFIG_ENV_VAR = "STANDALONE_BUILDER_CONFIG"

# BundleOptions fields a config file may set.
OPTION_KEYS = frozenset(
    {
        "build_dir",
        "output_file",
        "max_asset_size",
        "skip_extensions",
        "inline_extensions",
        "entry_candidates",
        "mode",
        "mount_id",
        "chunk_marker",
        "chunk_id_pattern",
        "shim_poll_interval_ms",
        "shim_timeout_ms",
        "lang",
        "default_title",
        "favicon",
        "head_extra",
        "body_extra",
        "verbose",
    }
)
STRING_KEYS = (
    "build_dir",
    "output_file",
    "mode",
    "mount_id",
    "chunk_marker",
    "chunk_id_pattern",
    "lang",
    "default_title",
    "favicon",
    "head_extra",
    "body_extra",
)
VALID_MODES = ("auto", "structural", "fragment")


class ConfigError(Exception):
    """Raised when build configuration cannot be loaded."""


def _resolve_config_path(path: Optional[str]) -> Optional[str]:
    """Return the config path, or None when no default config exists.

    An explicitly requested file (argument or environment override) that
    cannot be found is an error; a missing default file is not.
    """
    env_override = os.environ.get(CONFIG_ENV_VAR)
    explicit = path or env_override
    candidate = explicit or DEFAULT_CONFIG_NAME
    expanded = os.path.expanduser(candidate)
    if os.path.isabs(expanded):
        if os.path.isfile(expanded):
            return expanded
    else:
        resolved = os.path.abspath(os.path.join(os.getcwd(), expanded))
        if os.path.isfile(resolved):
            return resolved

    if explicit:
        raise ConfigError(f"Configuration file not found: {candidate}")
    return None


def _resolve_path(value: str, base_dir: str) -> str:
    """Resolve ``value`` into an absolute path relative to ``base_dir``."""
    expanded = os.path.expanduser(value)
    if os.path.isabs(expanded):
        return expanded
    return os.path.abspath(os.path.join(base_dir, expanded))


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """Load a JSON config file and normalize any filesystem paths."""
    config_path = _resolve_config_path(path)
    if config_path is None:
        return {}
    try:
        with open(config_path, "r", encoding="utf-8") as config_file:
            data = json.load(config_file)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid JSON in {config_path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Config root must be an object: {config_path}")

    base_dir = os.path.dirname(config_path)
    resolved: Dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, str) and key.endswith(("_dir", "_file")):
            resolved[key] = _resolve_path(value, base_dir)
        else:
            resolved[key] = value

    return resolved


def _check_types(config: Mapping[str, Any]) -> None:
    for key in ("skip_extensions", "inline_extensions", "entry_candidates"):
        value = config.get(key)
        if value is not None and (
            not isinstance(value, list)
            or not all(isinstance(item, str) for item in value)
        ):
            raise ConfigError(f"{key} must be a list of strings")
    for key in ("max_asset_size", "shim_poll_interval_ms", "shim_timeout_ms"):
        value = config.get(key)
        if value is not None and (
            isinstance(value, bool) or not isinstance(value, int) or value < 0
        ):
            raise ConfigError(f"{key} must be a non-negative integer")
    for key in STRING_KEYS:
        value = config.get(key)
        if value is not None and not isinstance(value, str):
            raise ConfigError(f"{key} must be a string")
    verbose = config.get("verbose")
    if verbose is not None and not isinstance(verbose, bool):
        raise ConfigError("verbose must be true or false")
    mime_types = config.get("mime_types")
    if mime_types is not None and (
        not isinstance(mime_types, dict)
        or not all(isinstance(item, str) for item in mime_types.values())
    ):
        raise ConfigError("mime_types must map extensions to strings")
    pattern = config.get("chunk_id_pattern")
    if pattern is not None:
        try:
            re.compile(pattern)
        except re.error as exc:
            raise ConfigError(
                f"chunk_id_pattern is not a valid regex: {exc}"
            ) from exc
    mode = config.get("mode")
    if mode is not None and mode not in VALID_MODES:
        raise ConfigError(
            f"mode must be one of {', '.join(VALID_MODES)}, got {mode!r}"
        )


def resolve_options(
    *,
    config_path: Optional[str] = None,
    build_dir: Optional[str] = None,
    output_file: Optional[str] = None,
    max_asset_size: Optional[int] = None,
    verbose: Optional[bool] = None,
) -> BundleOptions:
    """Combine CLI overrides with config values into BundleOptions."""
    config = load_config(config_path)
    unknown = sorted(set(config) - OPTION_KEYS - {"mime_types"})
    if unknown:
        raise ConfigError(f"Unknown config keys: {', '.join(unknown)}")
    _check_types(config)

    values: Dict[str, Any] = {
        key: value for key, value in config.items() if key in OPTION_KEYS
    }
    overrides = {
        "build_dir": (
            _resolve_path(build_dir, os.getcwd()) if build_dir else None
        ),
        "output_file": (
            _resolve_path(output_file, os.getcwd()) if output_file else None
        ),
        "max_asset_size": max_asset_size,
        "verbose": verbose,
    }
    for key, value in overrides.items():
        if value is not None:
            values[key] = value

    return BundleOptions.create(
        mime_overrides=config.get("mime_types"),
        **values,
    )
