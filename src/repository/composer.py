"""Remote Composer repository reading the v2 package metadata endpoint.

Only ``<url>/p2/<vendor>/<name>.json`` (tagged releases) and
``<url>/p2/<vendor>/<name>~dev.json`` (branches) are used; the rest of the
repository protocol is out of scope.
"""
from __future__ import annotations

import copy
import logging
from typing import Any, Dict, List, Optional

from common.http_client import get_json
from common.logging_utils import extra_context, is_debug_enabled, safe_url
from versioning.models import PackageRef

from .base import packages_from_metadata

logger = logging.getLogger(__name__)

MINIFIED_FORMAT = "composer/2.0"
UNSET_MARKER = "__unset"


def expand_minified(versions: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Expand Composer 2 minified metadata.

    Each entry only lists keys that changed since the previous entry; a value
    of ``"__unset"`` removes the key.
    """
    expanded: List[Dict[str, Any]] = []
    current: Optional[Dict[str, Any]] = None
    for entry in versions:
        if current is None:
            current = copy.deepcopy(entry)
        else:
            current = copy.deepcopy(current)
            for key, value in entry.items():
                if value == UNSET_MARKER:
                    current.pop(key, None)
                else:
                    current[key] = value
        expanded.append(current)
    return expanded


class ComposerRepository:
    """Lightweight client for a Composer v2 metadata repository."""

    def __init__(self, url: str, include_dev: bool = True):
        """Initialize the repository client.

        Args:
            url: Repository base URL, e.g. https://repo.packagist.org
            include_dev: Also query the ``~dev`` endpoint for branches.
        """
        self.url = url.rstrip("/")
        self.include_dev = include_dev
        self._cache: Dict[str, List[PackageRef]] = {}

    def describe(self) -> str:
        return safe_url(self.url)

    def packages_named(self, name: str) -> List[PackageRef]:
        if name not in self._cache:
            found = self._fetch(f"{self.url}/p2/{name}.json", name)
            if self.include_dev:
                found.extend(self._fetch(f"{self.url}/p2/{name}~dev.json", name))
            self._cache[name] = found
        return list(self._cache[name])

    def _fetch(self, url: str, name: str) -> List[PackageRef]:
        status, _, data = get_json(url)
        if status == 404:
            if is_debug_enabled(logger):
                logger.debug(
                    "Package not present in repository",
                    extra=extra_context(
                        event="http_response",
                        component="composer_repository",
                        action="fetch",
                        outcome="not_found",
                        status_code=status,
                        target=safe_url(url),
                        package=name,
                    ),
                )
            return []
        if status != 200 or not isinstance(data, dict):
            logger.warning(
                "Unable to load package metadata for %s from %s (status %s)",
                name,
                safe_url(url),
                status or "n/a",
            )
            return []

        versions = (data.get("packages") or {}).get(name) or []
        if not isinstance(versions, list):
            logger.warning("Unexpected metadata layout for %s from %s", name, safe_url(url))
            return []
        if data.get("minified") == MINIFIED_FORMAT:
            versions = expand_minified(versions)
        return packages_from_metadata(versions, self.describe())
