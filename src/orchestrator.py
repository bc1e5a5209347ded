"""Sequences selection, archive acquisition and extraction for one update run."""
from __future__ import annotations

import logging
import os
from typing import Callable, Optional

from archive.extractor import ArchiveExtractor
from archive.fetcher import ArchiveFetcher, DistDownloader
from common.logging_utils import extra_context, is_debug_enabled
from constants import Constants, ExitCodes
from errors import ConfigurationError, ExtractionError, PackageNotFoundError
from project import ProjectContext
from repository.factory import build_repository_set
from repository.repository_set import RepositorySet
from versioning.models import PackageRef, SelectionResult
from versioning.selector import PackageSelector

logger = logging.getLogger(__name__)


def report_selection(name: str, result: SelectionResult) -> None:
    """Emit the user-facing lines describing a selection."""
    if result.selected is None:
        logger.error("Could not find a package matching %s.", name)
        return
    if not result.multiple_matches:
        logger.info("Found an exact match %s.", result.selected.pretty_string)
        return
    logger.info("Found multiple matches, selected %s.", result.selected.pretty_string)
    everything = (result.selected,) + result.alternatives
    logger.info("Alternatives were %s.", ", ".join(p.pretty_string for p in everything))
    logger.warning("Please use a more specific constraint to pick a different package.")


class UpdateOrchestrator:
    """Runs one self-update: select -> fetch -> extract -> clean up."""

    def __init__(
        self,
        project: Optional[ProjectContext] = None,
        fetcher: Optional[ArchiveFetcher] = None,
        extractor: Optional[ArchiveExtractor] = None,
        selector: Optional[PackageSelector] = None,
        repository_set_factory: Callable[[Optional[ProjectContext]], RepositorySet] = build_repository_set,
    ):
        self.project = project
        self.fetcher = fetcher or DistDownloader()
        self.extractor = extractor or ArchiveExtractor()
        self.selector = selector or PackageSelector()
        self.repository_set_factory = repository_set_factory

    def resolve_target(self, package_name: Optional[str], version_expr: Optional[str]):
        """Package name and version from arguments, falling back to project config.

        Raises:
            ConfigurationError: if no usable package name can be determined.
        """
        name = package_name
        version = version_expr
        if self.project is not None:
            name = name or self.project.configured_package
            version = version or self.project.configured_version
        version = version or Constants.DEFAULT_PACKAGE_VERSION
        if not name or name == Constants.ROOT_PACKAGE_NAME:
            raise ConfigurationError(
                "Unable to determine the package name. Please, add "
                f'"extra.{Constants.PLUGIN_EXTRA_KEY}.package" config to your '
                "composer.json file and try again."
            )
        return name, version

    def resolve_project_dir(self, project_dir: Optional[str]) -> str:
        if project_dir:
            return os.path.realpath(project_dir)
        if self.project is not None:
            return self.project.package_dir
        raise ConfigurationError(
            "No composer.json found; pass the project directory explicitly."
        )

    def select(self, name: str, version: str) -> PackageRef:
        """Select the package to install, reporting what was found."""
        logger.info("Searching for the specified package.")
        repo_set = self.repository_set_factory(self.project)
        if self.project is None:
            logger.info(
                "No composer.json found in the current directory, searching packages from %s",
                repo_set.describe(),
            )
        result = self.selector.select(name, version, repo_set.min_stability, repo_set)
        report_selection(name, result)
        if result.selected is None:
            raise PackageNotFoundError(name)
        return result.selected

    def run(
        self,
        package_name: Optional[str] = None,
        version_expr: Optional[str] = None,
        project_dir: Optional[str] = None,
    ) -> ExitCodes:
        """Update ``project_dir`` with the selected package.

        Returns:
            ExitCodes.SUCCESS once the archive has been extracted.

        Raises:
            ConfigurationError, PackageNotFoundError, InvalidConstraintError,
            TypeMismatchError, FetchError, ExtractionError.
        """
        name, version = self.resolve_target(package_name, version_expr)
        target_dir = self.resolve_project_dir(project_dir)
        logger.info(
            'Updating the current project with the "%s" package, version "%s".', name, version
        )

        package = self.select(name, version)
        file_path = self.fetcher.fetch(package, target_dir)
        try:
            outcome = self.extractor.extract(file_path, target_dir, package.dist_type)
        finally:
            self._remove_archive(file_path)

        if is_debug_enabled(logger):
            logger.debug(
                "Extraction finished",
                extra=extra_context(
                    event="function_exit",
                    component="orchestrator",
                    action="extract",
                    outcome="success" if outcome.ok else outcome.kind.value,
                    target=target_dir,
                ),
            )
        if not outcome.ok:
            raise ExtractionError(outcome)

        logger.info("Project has been patched successfully!")
        return ExitCodes.SUCCESS

    @staticmethod
    def _remove_archive(file_path: str) -> None:
        try:
            os.remove(file_path)
        except OSError as exc:
            logger.debug("Could not remove archive %s: %s", file_path, exc)
