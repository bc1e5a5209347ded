"""Local repository built from vendor/composer/installed.json."""
from __future__ import annotations

import json
import logging
import os
from typing import List, Optional

from constants import Constants
from versioning.models import PackageRef

from .base import ArrayRepository, packages_from_metadata

logger = logging.getLogger(__name__)


class InstalledRepository(ArrayRepository):
    """Packages currently installed in a project.

    Accepts both the Composer 1 layout (a bare list) and the Composer 2
    layout (``{"packages": [...]}``). A missing file is an empty repository.
    """

    def __init__(self, path: str):
        self.path = path
        super().__init__(self._read(path), label=f"installed ({path})")

    @classmethod
    def for_project(cls, package_dir: str) -> "InstalledRepository":
        return cls(os.path.join(package_dir, Constants.INSTALLED_FILE))

    @staticmethod
    def _read(path: str) -> List[PackageRef]:
        if not os.path.isfile(path):
            logger.debug("No installed packages file at %s", path)
            return []
        try:
            with open(path, encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Unable to read installed packages from %s: %s", path, exc)
            return []

        entries: Optional[list] = data.get("packages") if isinstance(data, dict) else data
        if not isinstance(entries, list):
            logger.warning("Unexpected installed packages layout in %s", path)
            return []
        return packages_from_metadata(entries, "installed")
