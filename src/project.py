"""Project context loaded from composer.json."""
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from constants import Constants
from errors import ConfigurationError
from versioning.version import Stability

logger = logging.getLogger(__name__)


def locate_composer_file(cwd: Optional[str] = None) -> str:
    """Path of the project's composer.json, honoring the COMPOSER env var."""
    configured = os.environ.get(Constants.COMPOSER_ENV)
    base = cwd or os.getcwd()
    if configured:
        return configured if os.path.isabs(configured) else os.path.join(base, configured)
    return os.path.join(base, Constants.COMPOSER_FILE)


@dataclass
class ProjectContext:
    """The subset of composer.json the self-update command relies on."""

    composer_file: str
    name: Optional[str] = None
    minimum_stability: Stability = Stability.STABLE
    extra: Dict[str, Any] = field(default_factory=dict)
    repositories: List[Any] = field(default_factory=list)

    @property
    def package_dir(self) -> str:
        return os.path.dirname(os.path.realpath(self.composer_file))

    @property
    def plugin_config(self) -> Dict[str, Any]:
        section = self.extra.get(Constants.PLUGIN_EXTRA_KEY)
        return section if isinstance(section, dict) else {}

    @property
    def configured_package(self) -> Optional[str]:
        """Package to update: plugin config first, then the project's own name."""
        return self.plugin_config.get("package") or self.name

    @property
    def configured_version(self) -> str:
        return self.plugin_config.get("require") or Constants.DEFAULT_PACKAGE_VERSION

    @classmethod
    def load(cls, composer_file: Optional[str] = None) -> Optional["ProjectContext"]:
        """Load composer.json; None when the file does not exist.

        Raises:
            ConfigurationError: if the file exists but cannot be used.
        """
        path = composer_file or locate_composer_file()
        if os.path.isdir(path):
            path = os.path.join(path, Constants.COMPOSER_FILE)
        if not os.path.isfile(path):
            logger.debug("No composer file at %s", path)
            return None

        try:
            with open(path, encoding="utf-8") as fh:
                data = json.load(fh)
        except json.JSONDecodeError as exc:
            raise ConfigurationError(f'"{path}" does not contain valid JSON: {exc}') from exc
        except OSError as exc:
            raise ConfigurationError(f'"{path}" could not be read: {exc}') from exc
        if not isinstance(data, dict):
            raise ConfigurationError(f'"{path}" must contain a JSON object')

        raw_stability = data.get("minimum-stability") or Constants.DEFAULT_MINIMUM_STABILITY
        try:
            stability = Stability.from_token(raw_stability)
        except ValueError as exc:
            raise ConfigurationError(f'Invalid "minimum-stability" in {path}: {exc}') from exc

        repositories = data.get("repositories") or []
        if isinstance(repositories, dict):
            # Composer also accepts an object keyed by repository name.
            repositories = [{name: value} if value is False else value for name, value in repositories.items()]

        return cls(
            composer_file=path,
            name=data.get("name"),
            minimum_stability=stability,
            extra=data.get("extra") if isinstance(data.get("extra"), dict) else {},
            repositories=list(repositories),
        )
