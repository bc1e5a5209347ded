"""Stability-aware package selection over a repository set."""
from __future__ import annotations

import logging
from typing import Optional, Sequence

from common.logging_utils import extra_context, is_debug_enabled

from .models import PackageRef, SelectionResult, Stability, ensure_complete
from .parser import parse_constraint

logger = logging.getLogger(__name__)


def find_best_candidate(candidates: Sequence[PackageRef]) -> Optional[PackageRef]:
    """Highest stability, then highest version; None if nothing is orderable."""
    best = None
    best_key = None
    for candidate in candidates:
        key = candidate.sort_key()
        if key is None:
            continue
        if best_key is None or key > best_key:
            best, best_key = candidate, key
    return best


class PackageSelector:
    """Pick one release of a package and report the alternatives.

    Performs no I/O; callers turn the SelectionResult into user messages.
    """

    def select(
        self,
        name: str,
        raw_version: Optional[str],
        min_stability: Stability,
        repos,
    ) -> SelectionResult:
        """Select the best release of ``name`` matching ``raw_version``.

        Args:
            name: Package name (case-insensitive).
            raw_version: Version expression, optionally ending in ``@stability``.
            min_stability: Fallback minimum stability policy.
            repos: RepositorySet to query.

        Returns:
            SelectionResult with the chosen package and the other matches.
        """
        constraint = parse_constraint(raw_version)
        effective = constraint.stability_override or min_stability
        matches = [ensure_complete(p) for p in repos.find_packages(name, constraint, effective)]

        if is_debug_enabled(logger):
            logger.debug(
                "Selection candidates",
                extra=extra_context(
                    event="decision",
                    component="selector",
                    action="select",
                    package=name,
                    count=len(matches),
                    min_stability=effective.label,
                ),
            )

        if not matches:
            return SelectionResult()
        if len(matches) == 1:
            return SelectionResult(selected=matches[0])

        selected = find_best_candidate(matches)
        if selected is None:
            selected = matches[0]
        alternatives = tuple(p for p in matches if p is not selected)
        return SelectionResult(selected=selected, alternatives=alternatives)
