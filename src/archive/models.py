"""Result types and error codes for archive extraction."""

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Optional


class ExtractionErrorKind(Enum):
    """Failure classes reported by the extractor."""

    CORRUPT_ARCHIVE = "corrupt_archive"
    FORMAT_ERROR = "format_error"
    CASE_COLLISION = "case_collision"
    UNKNOWN = "unknown"


class FormatErrorCode(IntEnum):
    """Archive-open failure codes (libzip numbering)."""

    SEEK = 4
    READ = 5
    NOENT = 9
    EXISTS = 10
    OPEN = 11
    MEMORY = 14
    INVAL = 18
    NOZIP = 19
    INCONS = 21


_FORMAT_MESSAGES = {
    FormatErrorCode.EXISTS: "File '{file}' already exists.",
    FormatErrorCode.INCONS: "{label} archive '{file}' is inconsistent.",
    FormatErrorCode.INVAL: "Invalid argument ({file})",
    FormatErrorCode.MEMORY: "Malloc failure ({file})",
    FormatErrorCode.NOENT: "No such {fmt} file: '{file}'",
    FormatErrorCode.NOZIP: "'{file}' is not a {fmt} archive.",
    FormatErrorCode.OPEN: "Can't open {fmt} file: {file}",
    FormatErrorCode.READ: "{label} read error ({file})",
    FormatErrorCode.SEEK: "{label} seek error ({file})",
}

CASE_COLLISION_PREFIX = (
    "The archive may contain identical file names with different capitalization "
    "(which fails on case insensitive filesystems): "
)
GENERIC_EXTRACTION_FAILURE = (
    "There was an error extracting the {label} file, it is either corrupted or using an invalid format."
)


def format_error_message(code: int, file_path: str, fmt: str = "zip") -> str:
    """Human-readable message for an archive-open failure code."""
    try:
        template = _FORMAT_MESSAGES[FormatErrorCode(code)]
    except ValueError:
        return f"'{file_path}' is not a valid {fmt} archive, got error code: {code}"
    return template.format(file=file_path, fmt=fmt, label=fmt.capitalize())


def corrupt_archive_message(file_path: str, fmt: str = "zip") -> str:
    return f"'{file_path}' is a corrupted {fmt} archive (0 bytes), try again."


@dataclass(frozen=True)
class ExtractionOutcome:
    """Tagged result of a single extraction attempt."""

    ok: bool
    kind: Optional[ExtractionErrorKind] = None
    message: str = ""
    code: Optional[int] = None

    @classmethod
    def success(cls) -> "ExtractionOutcome":
        return cls(ok=True)

    @classmethod
    def failure(
        cls, kind: ExtractionErrorKind, message: str, code: Optional[int] = None
    ) -> "ExtractionOutcome":
        return cls(ok=False, kind=kind, message=message, code=code)

    def __bool__(self) -> bool:
        return self.ok
