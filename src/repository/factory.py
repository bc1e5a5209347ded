"""Build repository sets from a project context or from defaults."""
from __future__ import annotations

import logging
from typing import Any, List, Optional

from constants import Constants
from versioning.version import Stability

from .base import ArrayRepository, Repository
from .composer import ComposerRepository
from .installed import InstalledRepository
from .repository_set import RepositorySet

logger = logging.getLogger(__name__)

PACKAGIST_KEY = "packagist.org"


def default_repositories() -> List[Repository]:
    """The well-known public repositories used when there is no project."""
    return [ComposerRepository(url) for url in Constants.DEFAULT_REPOSITORIES]


def _packagist_disabled(entry: Any) -> bool:
    return isinstance(entry, dict) and entry.get(PACKAGIST_KEY) is False


def configured_repositories(entries: List[Any]) -> List[Repository]:
    """Translate composer.json ``repositories`` entries.

    Supports ``composer`` and inline ``package`` repositories; other types are
    skipped with a warning. Packagist is appended unless disabled with
    ``{"packagist.org": false}``.
    """
    repositories: List[Repository] = []
    include_packagist = True
    for entry in entries:
        if _packagist_disabled(entry):
            include_packagist = False
            continue
        if not isinstance(entry, dict):
            logger.warning("Ignoring malformed repository entry: %r", entry)
            continue
        repo_type = entry.get("type")
        if repo_type == "composer" and entry.get("url"):
            repositories.append(ComposerRepository(str(entry["url"])))
        elif repo_type == "package" and entry.get("package"):
            packages = entry["package"]
            if isinstance(packages, dict):
                packages = [packages]
            repositories.append(ArrayRepository.from_metadata(packages, label="package"))
        else:
            logger.warning("Repository type %r is not supported and will be skipped", repo_type)
    if include_packagist:
        repositories.extend(default_repositories())
    return repositories


def repositories_for(project) -> List[Repository]:
    """Local installed packages first, then the project's repositories."""
    return [InstalledRepository.for_project(project.package_dir)] + configured_repositories(
        project.repositories
    )


def minimum_stability_for(project) -> Stability:
    if project is None:
        return Stability.STABLE
    return project.minimum_stability


def build_repository_set(project, repositories: Optional[List[Repository]] = None) -> RepositorySet:
    """RepositorySet for ``project``, or for the default repositories when None."""
    repo_set = RepositorySet(minimum_stability_for(project))
    if repositories is None:
        repositories = repositories_for(project) if project is not None else default_repositories()
    for repository in repositories:
        repo_set.add_repository(repository)
    return repo_set
