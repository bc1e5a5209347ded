"""Repository abstractions: in-memory and composite package sources."""
from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Protocol, Sequence

from versioning.models import PackageRef

logger = logging.getLogger(__name__)


def packages_from_metadata(entries: Iterable[Any], label: str) -> List[PackageRef]:
    """Convert Composer package entries, logging and skipping malformed ones."""
    packages = []
    for entry in entries:
        if not isinstance(entry, dict):
            logger.warning("Ignoring non-object package entry in %s repository", label)
            continue
        try:
            packages.append(PackageRef.from_composer(entry))
        except ValueError as exc:
            logger.warning("Ignoring invalid package entry in %s repository: %s", label, exc)
    return packages


class Repository(Protocol):
    """A queryable source of package releases."""

    def packages_named(self, name: str) -> List[PackageRef]:
        """All releases of ``name`` (already lowercased) in declaration order."""

    def describe(self) -> str:
        """Short human-readable label used in log lines."""


class ArrayRepository:
    """Repository backed by an in-memory list of packages."""

    def __init__(self, packages: Iterable[PackageRef] = (), label: str = "array"):
        self._packages: List[PackageRef] = list(packages)
        self._label = label

    @classmethod
    def from_metadata(cls, entries: Sequence[Dict[str, Any]], label: str = "package") -> "ArrayRepository":
        """Build from Composer package entries, skipping malformed ones."""
        return cls(packages_from_metadata(entries, label), label=label)

    def packages_named(self, name: str) -> List[PackageRef]:
        return [p for p in self._packages if p.name == name]

    def describe(self) -> str:
        return self._label


class CompositeRepository:
    """Concatenates the results of several repositories, in order."""

    def __init__(self, repositories: Iterable[Repository] = ()):
        self._repositories: List[Repository] = list(repositories)

    @property
    def repositories(self) -> List[Repository]:
        return list(self._repositories)

    def add_repository(self, repository: Repository) -> None:
        self._repositories.append(repository)

    def packages_named(self, name: str) -> List[PackageRef]:
        found: List[PackageRef] = []
        for repository in self._repositories:
            found.extend(repository.packages_named(name))
        return found

    def describe(self) -> str:
        return ", ".join(r.describe() for r in self._repositories)
