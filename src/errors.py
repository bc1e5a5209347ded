"""Error taxonomy for the self-update command.

Every error carries the exit code the CLI reports for it, so ``main`` can map
any of them to a process status without a lookup table.
"""
from __future__ import annotations

from typing import Optional

from constants import ExitCodes


class SelfUpdateError(Exception):
    """Base class for all errors surfaced to the user."""

    exit_code = ExitCodes.FILE_ERROR


class ConfigurationError(SelfUpdateError):
    """The package identity or tool configuration could not be determined."""

    exit_code = ExitCodes.CONFIG_ERROR


class PackageNotFoundError(SelfUpdateError):
    """Selection yielded no matching package."""

    exit_code = ExitCodes.NOT_FOUND

    def __init__(self, package_name: str):
        super().__init__(f"Could not find a package matching {package_name}.")
        self.package_name = package_name


class InvalidConstraintError(SelfUpdateError, ValueError):
    """A version expression was rejected by the constraint grammar."""

    exit_code = ExitCodes.CONFIG_ERROR

    def __init__(self, expression: str, reason: str):
        super().__init__(f'Could not parse version constraint "{expression}": {reason}')
        self.expression = expression
        self.reason = reason


class TypeMismatchError(SelfUpdateError, TypeError):
    """A repository returned something that is not a complete package."""

    exit_code = ExitCodes.INTERNAL_ERROR


class FetchError(SelfUpdateError):
    """The archive for the selected package could not be obtained."""

    exit_code = ExitCodes.CONNECTION_ERROR

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message)
        self.url = url


class ExtractionError(SelfUpdateError):
    """Wraps a failed ExtractionOutcome for propagation to the CLI."""

    exit_code = ExitCodes.FILE_ERROR

    def __init__(self, outcome):
        super().__init__(outcome.message)
        self.outcome = outcome
