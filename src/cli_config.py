"""Configuration loading and CLI overrides for runtime tunables.

Precedence, highest first: CLI flags, the YAML config file, the built-in
Constants. Extracted from selfupdate.py to keep the entrypoint slim.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional

import yaml

from constants import Constants, _load_yaml_config
from errors import ConfigurationError

logger = logging.getLogger(__name__)


def load_config(explicit_path: Optional[str] = None) -> Dict[str, Any]:
    """Load the YAML config, wrapping parse errors as ConfigurationError."""
    if explicit_path and not os.path.isfile(explicit_path):
        raise ConfigurationError(f"Config file not found: {explicit_path}")
    try:
        return _load_yaml_config(explicit_path)
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML configuration: {exc}") from exc
    except ValueError as exc:
        raise ConfigurationError(str(exc)) from exc


def _section(cfg: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = cfg.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigurationError(f'Config section "{key}" must be a mapping')
    return value


def apply_config(cfg: Dict[str, Any]) -> None:
    """Apply YAML settings onto Constants.

    Raises:
        ConfigurationError: on values of the wrong type.
    """
    http = _section(cfg, "http")
    try:
        if http.get("timeout") is not None:
            Constants.REQUEST_TIMEOUT = int(http["timeout"])
        if http.get("retries") is not None:
            Constants.HTTP_RETRY_MAX = max(1, int(http["retries"]))
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid http setting: {exc}") from exc

    repositories = _section(cfg, "repositories")
    defaults = repositories.get("default")
    if defaults is not None:
        if not isinstance(defaults, list) or not all(isinstance(u, str) for u in defaults):
            raise ConfigurationError('"repositories.default" must be a list of URLs')
        Constants.DEFAULT_REPOSITORIES = list(defaults)


def package_settings(cfg: Dict[str, Any]) -> Dict[str, Optional[str]]:
    """Package name/constraint configured in YAML, used when the CLI omits them."""
    package = _section(cfg, "package")
    return {"name": package.get("name"), "require": package.get("require")}


def resolve_package_args(args, cfg: Dict[str, Any]) -> None:
    """Fill args.PACKAGE / args.REQUIRE from YAML when not given on the CLI."""
    settings = package_settings(cfg)
    if not getattr(args, "PACKAGE", None) and settings["name"]:
        args.PACKAGE = settings["name"]
    if not getattr(args, "REQUIRE", None) and settings["require"]:
        args.REQUIRE = settings["require"]
