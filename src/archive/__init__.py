"""Archive acquisition and extraction."""

from .extractor import ArchiveExtractor
from .models import ExtractionErrorKind, ExtractionOutcome, FormatErrorCode

__all__ = [
    "ArchiveExtractor",
    "ExtractionErrorKind",
    "ExtractionOutcome",
    "FormatErrorCode",
]
