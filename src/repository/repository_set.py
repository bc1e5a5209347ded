"""Stability- and constraint-filtered view over a set of repositories."""
from __future__ import annotations

import logging
from typing import List, Optional

from common.logging_utils import extra_context, is_debug_enabled
from versioning.models import Constraint, PackageRef, Stability, ensure_complete

from .base import CompositeRepository, Repository

logger = logging.getLogger(__name__)


class RepositorySet:
    """Answers "which releases of P satisfy C at minimum stability S?".

    Results keep repository order, then declaration order inside each
    repository. When two repositories offer the same normalized version, the
    one added first wins, so the local repository shadows remotes.
    """

    def __init__(self, min_stability: Stability = Stability.STABLE):
        self.min_stability = min_stability
        self._composite = CompositeRepository()

    def add_repository(self, repository: Repository) -> None:
        self._composite.add_repository(repository)

    @property
    def repositories(self) -> List[Repository]:
        return self._composite.repositories

    def describe(self) -> str:
        return self._composite.describe()

    def find_packages(
        self,
        name: str,
        constraint: Optional[Constraint] = None,
        min_stability: Optional[Stability] = None,
    ) -> List[PackageRef]:
        """Return every release of ``name`` passing the stability and constraint filters.

        Args:
            name: Package name; lowercased before lookup.
            constraint: Version constraint, None for any version.
            min_stability: Overrides the set's own minimum stability.

        Returns:
            Matching releases; empty when nothing matches.
        """
        lookup = name.strip().lower()
        floor = self.min_stability if min_stability is None else min_stability
        seen = set()
        matches: List[PackageRef] = []
        for package in self._composite.packages_named(lookup):
            ensure_complete(package)
            key = (package.name, package.version)
            if key in seen:
                continue
            seen.add(key)
            if package.stability < floor:
                continue
            if constraint is not None and not constraint.matches(package.version):
                continue
            matches.append(package)

        if is_debug_enabled(logger):
            logger.debug(
                "Repository query",
                extra=extra_context(
                    event="query",
                    component="repository_set",
                    action="find_packages",
                    package=lookup,
                    count=len(matches),
                    min_stability=floor.label,
                    constraint=getattr(constraint, "expression", None),
                ),
            )
        return matches
