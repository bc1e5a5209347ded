"""Validate and unpack a local archive over a destination directory.

Every failure is returned as an ExtractionOutcome rather than raised, and the
archive container is closed on every exit path.
"""
from __future__ import annotations

import logging
import os
import tarfile
import tempfile
import zipfile
from typing import Callable, Dict, Iterable, List, Optional, Protocol

from common.logging_utils import Timer, extra_context, is_debug_enabled
from constants import DistTypes

from .models import (
    CASE_COLLISION_PREFIX,
    GENERIC_EXTRACTION_FAILURE,
    ExtractionErrorKind,
    ExtractionOutcome,
    FormatErrorCode,
    corrupt_archive_message,
    format_error_message,
)

logger = logging.getLogger(__name__)

_TAR_SUFFIXES = (".tar", ".tar.gz", ".tgz", ".tar.bz2", ".tbz2", ".tar.xz", ".txz")


class ArchiveOpenError(Exception):
    """Opening the container failed with a format-specific code."""

    def __init__(self, code: int, detail: str = ""):
        super().__init__(detail or f"archive open failed with code {code}")
        self.code = code


class UnsafeArchiveError(ValueError):
    """An entry would be written outside the destination directory."""


class ArchiveContainer(Protocol):
    """An opened archive."""

    def names(self) -> List[str]:
        """Entry names as stored in the archive."""

    def extract_all(self, dest_dir: str) -> bool:
        """Extract everything; False when the container reports failure."""

    def close(self) -> None:
        """Release the underlying handle."""


def _ensure_inside(dest_dir: str, name: str) -> None:
    dest = os.path.realpath(dest_dir)
    target = os.path.realpath(os.path.join(dest, name))
    if os.path.isabs(name) or (target != dest and not target.startswith(dest + os.sep)):
        raise UnsafeArchiveError(f"Refusing to extract '{name}' outside of {dest_dir}")


class ZipContainer:
    """ArchiveContainer over zipfile.ZipFile."""

    def __init__(self, handle: zipfile.ZipFile):
        self._zip = handle

    def names(self) -> List[str]:
        return self._zip.namelist()

    def extract_all(self, dest_dir: str) -> bool:
        for name in self.names():
            _ensure_inside(dest_dir, name)
        self._zip.extractall(dest_dir)
        return True

    def close(self) -> None:
        self._zip.close()


class TarContainer:
    """ArchiveContainer over tarfile.TarFile."""

    def __init__(self, handle: tarfile.TarFile):
        self._tar = handle

    def names(self) -> List[str]:
        return self._tar.getnames()

    def extract_all(self, dest_dir: str) -> bool:
        for member in self._tar.getmembers():
            _ensure_inside(dest_dir, member.name)
            if member.issym() or member.islnk():
                base = os.path.dirname(member.name) if member.issym() else ""
                _ensure_inside(dest_dir, os.path.join(base, member.linkname))
        self._tar.extractall(dest_dir, filter="data")
        return True

    def close(self) -> None:
        self._tar.close()


def _classify_os_error(exc: OSError) -> FormatErrorCode:
    if isinstance(exc, FileNotFoundError):
        return FormatErrorCode.NOENT
    if isinstance(exc, FileExistsError):
        return FormatErrorCode.EXISTS
    if isinstance(exc, (IsADirectoryError, PermissionError)):
        return FormatErrorCode.OPEN
    if "seek" in str(exc).lower():
        return FormatErrorCode.SEEK
    return FormatErrorCode.READ


def open_zip(file_path: str) -> ZipContainer:
    """Open a zip archive, translating failures into ArchiveOpenError."""
    try:
        return ZipContainer(zipfile.ZipFile(file_path))
    except zipfile.BadZipFile as exc:
        detail = str(exc).lower()
        if "not a zip file" in detail:
            raise ArchiveOpenError(FormatErrorCode.NOZIP, str(exc)) from exc
        raise ArchiveOpenError(FormatErrorCode.INCONS, str(exc)) from exc
    except zipfile.LargeZipFile as exc:
        raise ArchiveOpenError(FormatErrorCode.INCONS, str(exc)) from exc
    except MemoryError as exc:
        raise ArchiveOpenError(FormatErrorCode.MEMORY, "out of memory") from exc
    except ValueError as exc:
        raise ArchiveOpenError(FormatErrorCode.INVAL, str(exc)) from exc
    except OSError as exc:
        raise ArchiveOpenError(_classify_os_error(exc), str(exc)) from exc


def open_tar(file_path: str) -> TarContainer:
    """Open a (possibly compressed) tar archive."""
    try:
        return TarContainer(tarfile.open(file_path, "r:*"))
    except tarfile.CompressionError as exc:
        raise ArchiveOpenError(FormatErrorCode.INCONS, str(exc)) from exc
    except tarfile.ReadError as exc:
        raise ArchiveOpenError(FormatErrorCode.NOZIP, str(exc)) from exc
    except MemoryError as exc:
        raise ArchiveOpenError(FormatErrorCode.MEMORY, "out of memory") from exc
    except ValueError as exc:
        raise ArchiveOpenError(FormatErrorCode.INVAL, str(exc)) from exc
    except OSError as exc:
        raise ArchiveOpenError(_classify_os_error(exc), str(exc)) from exc


Opener = Callable[[str], ArchiveContainer]

DEFAULT_OPENERS: Dict[str, Opener] = {
    DistTypes.ZIP.value: open_zip,
    DistTypes.TAR.value: open_tar,
}


def archive_format(file_path: str, dist_type: Optional[str] = None) -> str:
    """Archive format from an explicit dist type, else from the file name."""
    if dist_type:
        lowered = dist_type.lower()
        if lowered in ("tar", "tgz", "gzip", "tar.gz", "tar.bz2", "tar.xz"):
            return DistTypes.TAR.value
        return lowered
    if file_path.lower().endswith(_TAR_SUFFIXES):
        return DistTypes.TAR.value
    return DistTypes.ZIP.value


def case_collisions(names: Iterable[str]) -> List[str]:
    """Entry paths (including implied parent directories) equal up to case."""
    seen: Dict[str, set] = {}
    for name in names:
        parts = [p for p in name.replace("\\", "/").split("/") if p]
        for depth in range(1, len(parts) + 1):
            path = "/".join(parts[:depth])
            seen.setdefault(path.casefold(), set()).add(path)
    return sorted(p for variants in seen.values() if len(variants) > 1 for p in variants)


def is_case_insensitive(directory: str) -> bool:
    """Check whether ``directory`` lives on a case-insensitive filesystem."""
    with tempfile.NamedTemporaryFile(prefix=".CaseCheck", dir=directory) as marker:
        head, tail = os.path.split(marker.name)
        return os.path.exists(os.path.join(head, tail.swapcase()))


class ArchiveExtractor:
    """Extract archives over a directory, classifying every failure mode."""

    def __init__(
        self,
        openers: Optional[Dict[str, Opener]] = None,
        case_insensitive: Optional[bool] = None,
    ):
        """Initialize the extractor.

        Args:
            openers: Format name -> opener; defaults to zip and tar.
            case_insensitive: Force the destination filesystem case behavior
                instead of probing it.
        """
        self._openers = dict(DEFAULT_OPENERS if openers is None else openers)
        self._case_insensitive = case_insensitive

    def _dest_case_insensitive(self, dest_dir: str) -> bool:
        if self._case_insensitive is not None:
            return self._case_insensitive
        return is_case_insensitive(dest_dir)

    @staticmethod
    def _has_content(file_path: str) -> bool:
        try:
            return os.path.isfile(file_path) and os.path.getsize(file_path) > 0
        except OSError:
            return False

    def extract(
        self, file_path: str, dest_dir: str, dist_type: Optional[str] = None
    ) -> ExtractionOutcome:
        """Extract ``file_path`` into ``dest_dir``.

        Args:
            file_path: Local archive path.
            dest_dir: Destination directory; created if missing.
            dist_type: Archive format; inferred from the file name when None.

        Returns:
            ExtractionOutcome; never raises for archive problems.
        """
        fmt = archive_format(file_path, dist_type)
        if not self._has_content(file_path):
            return ExtractionOutcome.failure(
                ExtractionErrorKind.CORRUPT_ARCHIVE, corrupt_archive_message(file_path, fmt)
            )

        opener = self._openers.get(fmt)
        if opener is None:
            return ExtractionOutcome.failure(
                ExtractionErrorKind.FORMAT_ERROR,
                f"Archive type '{fmt}' of '{file_path}' is not supported.",
            )

        container: Optional[ArchiveContainer] = None
        with Timer() as timer:
            try:
                try:
                    container = opener(file_path)
                except ArchiveOpenError as exc:
                    logger.debug("Opening %s failed: %s", file_path, exc)
                    return ExtractionOutcome.failure(
                        ExtractionErrorKind.FORMAT_ERROR,
                        format_error_message(exc.code, file_path, fmt),
                        int(exc.code),
                    )

                os.makedirs(dest_dir, exist_ok=True)
                names = container.names()
                if self._dest_case_insensitive(dest_dir):
                    collisions = case_collisions(names)
                    if collisions:
                        return ExtractionOutcome.failure(
                            ExtractionErrorKind.CASE_COLLISION,
                            CASE_COLLISION_PREFIX + ", ".join(collisions),
                        )

                if not container.extract_all(dest_dir):
                    return ExtractionOutcome.failure(
                        ExtractionErrorKind.UNKNOWN,
                        GENERIC_EXTRACTION_FAILURE.format(label=fmt.upper()),
                    )
            except OSError as exc:
                if self._case_insensitive_safe(dest_dir):
                    return ExtractionOutcome.failure(
                        ExtractionErrorKind.CASE_COLLISION, CASE_COLLISION_PREFIX + str(exc)
                    )
                return ExtractionOutcome.failure(ExtractionErrorKind.UNKNOWN, str(exc))
            except Exception as exc:  # pylint: disable=broad-exception-caught
                return ExtractionOutcome.failure(
                    ExtractionErrorKind.UNKNOWN, str(exc) or type(exc).__name__
                )
            finally:
                if container is not None:
                    container.close()

        if is_debug_enabled(logger):
            logger.debug(
                "Archive extracted",
                extra=extra_context(
                    event="extract",
                    component="archive_extractor",
                    action="extract",
                    outcome="success",
                    target=file_path,
                    count=len(names),
                    duration_ms=timer.duration_ms(),
                ),
            )
        return ExtractionOutcome.success()

    def _case_insensitive_safe(self, dest_dir: str) -> bool:
        """Case check that treats an unusable destination as case-sensitive."""
        try:
            return self._dest_case_insensitive(dest_dir)
        except OSError:
            return False
