"""Data models for versioning and package selection."""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol, Tuple, runtime_checkable

from errors import TypeMismatchError

from .constraint import CompiledConstraint
from .version import ParsedVersion, Stability, normalize_version, parse_stability, parse_version

__all__ = [
    "CompletePackage",
    "Constraint",
    "PackageRef",
    "SelectionResult",
    "Stability",
    "ensure_complete",
]


@runtime_checkable
class CompletePackage(Protocol):
    """What every value coming out of a repository must provide."""

    name: str
    version: str
    pretty_name: str
    stability: Stability
    dist_type: str


def ensure_complete(candidate):
    """Check a repository value carries full package metadata.

    Raises:
        TypeMismatchError: if any of name/version/pretty_name/stability/dist_type
            is missing or of the wrong kind.
    """
    if not isinstance(candidate, CompletePackage):
        raise TypeMismatchError(
            f"Expected a complete package but found {type(candidate).__name__}"
        )
    for attr in ("name", "version", "pretty_name", "dist_type"):
        value = getattr(candidate, attr)
        if not isinstance(value, str) or not value:
            raise TypeMismatchError(
                f"Package {type(candidate).__name__} has no usable {attr!r}"
            )
    if not isinstance(candidate.stability, Stability):
        raise TypeMismatchError(
            f"Package {candidate.name} has stability of type {type(candidate.stability).__name__}"
        )
    return candidate


@dataclass(frozen=True)
class PackageRef:
    """A concrete release of a package, as returned by repositories."""

    name: str
    version: str
    pretty_name: str
    stability: Stability
    dist_type: str
    pretty_version: Optional[str] = None
    dist_url: Optional[str] = None
    dist_reference: Optional[str] = None
    dist_shasum: Optional[str] = None

    @property
    def pretty_string(self) -> str:
        return f"{self.pretty_name} {self.pretty_version or self.version}"

    def parsed_version(self) -> Optional[ParsedVersion]:
        """Parsed form of ``version``, or None when it cannot be parsed."""
        try:
            return parse_version(self.version)
        except ValueError:
            return None

    def sort_key(self) -> Optional[tuple]:
        """Stability rank first, then version; None for unorderable releases."""
        parsed = self.parsed_version()
        if parsed is None or parsed.is_branch:
            return None
        return (self.stability, parsed.key())

    @classmethod
    def from_composer(cls, data: Dict[str, Any]) -> "PackageRef":
        """Build a PackageRef from a Composer package metadata entry.

        Only the name, version and dist fields are read.

        Raises:
            ValueError: when name, version or dist type is missing, or the
                version is malformed.
        """
        pretty_name = str(data.get("name") or "").strip()
        pretty_version = str(data.get("version") or "").strip()
        if not pretty_name or not pretty_version:
            raise ValueError("package metadata requires both name and version")
        version = str(data.get("version_normalized") or normalize_version(pretty_version))
        dist = data.get("dist") if isinstance(data.get("dist"), dict) else {}
        dist_type = str(dist.get("type") or "").strip()
        if not dist_type:
            raise ValueError(f"package {pretty_name} {pretty_version} has no dist type")
        return cls(
            name=pretty_name.lower(),
            version=version,
            pretty_name=pretty_name,
            stability=parse_stability(pretty_version),
            dist_type=dist_type,
            pretty_version=pretty_version,
            dist_url=dist.get("url"),
            dist_reference=dist.get("reference"),
            dist_shasum=dist.get("shasum") or None,
        )


@dataclass(frozen=True)
class Constraint:
    """A parsed version requirement plus an optional stability override."""

    expression: Optional[str] = None
    stability_override: Optional[Stability] = None
    compiled: Optional[CompiledConstraint] = field(default=None, compare=False, repr=False)

    def matches(self, version: str) -> bool:
        """Whether a concrete version satisfies this constraint."""
        if self.compiled is None:
            return True
        return self.compiled.matches(version)


@dataclass(frozen=True)
class SelectionResult:
    """Outcome of a selection attempt."""

    selected: Optional[PackageRef] = None
    alternatives: Tuple[PackageRef, ...] = ()

    @property
    def found(self) -> bool:
        return self.selected is not None

    @property
    def multiple_matches(self) -> bool:
        return bool(self.alternatives)
