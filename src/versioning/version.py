"""Composer-style version normalization and stability parsing.

Concrete versions are reduced to a ``semantic_version.Version`` release triple
plus the bits Composer keeps beyond semver (a fourth numeric component and a
stability modifier), so candidates can be ordered consistently.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from enum import IntEnum
from typing import Optional, Tuple

import semantic_version

# 7 nines: the placeholder Composer uses for "x" in numbered dev branches.
BRANCH_PLACEHOLDER = 9999999

_MODIFIER = r"[._-]?(?:(stable|beta|b|RC|alpha|a|patch|pl|p)((?:[.-]?\d+)*)?)?([.-]?dev)?"
_CLASSICAL_RE = re.compile(
    r"^v?(\d{1,7})(\.\d+)?(\.\d+)?(\.\d+)?" + _MODIFIER + r"$", re.IGNORECASE
)
_MODIFIER_TAIL_RE = re.compile(_MODIFIER + r"(?:\+.*)?$", re.IGNORECASE)
_NUMBERED_BRANCH_RE = re.compile(r"^v?(\d+)((?:\.(?:\d+|[x*]))*)[.-]?dev$", re.IGNORECASE)

_MODIFIER_ALIASES = {
    "stable": "stable",
    "b": "beta",
    "beta": "beta",
    "a": "alpha",
    "alpha": "alpha",
    "rc": "RC",
    "p": "patch",
    "pl": "patch",
    "patch": "patch",
}


class Stability(IntEnum):
    """Release stability levels, ordered from least to most stable."""

    DEV = 0
    ALPHA = 1
    BETA = 2
    RC = 3
    STABLE = 4

    @property
    def label(self) -> str:
        """Composer spelling of the level (``RC`` is upper-case)."""
        return "RC" if self is Stability.RC else self.name.lower()

    @classmethod
    def from_token(cls, token: str) -> "Stability":
        """Parse a stability token case-insensitively."""
        try:
            return cls[str(token).strip().upper()]
        except KeyError:
            raise ValueError(f'Unknown stability "{token}"') from None

    def __str__(self) -> str:
        return self.label


def is_dev_branch(version: str) -> bool:
    """True for named branches such as ``dev-main``."""
    return version.lower().startswith("dev-")


def parse_stability(version: str) -> Stability:
    """Return the stability implied by a version string."""
    version = re.sub(r"#.+$", "", version.strip())
    lowered = version.lower()
    if lowered.startswith("dev-") or lowered.endswith("-dev"):
        return Stability.DEV
    match = _MODIFIER_TAIL_RE.search(lowered)
    if match is None:
        return Stability.STABLE
    if match.group(3):
        return Stability.DEV
    modifier = match.group(1)
    if modifier in ("beta", "b"):
        return Stability.BETA
    if modifier in ("alpha", "a"):
        return Stability.ALPHA
    if modifier == "rc":
        return Stability.RC
    return Stability.STABLE


def _modifier_number(raw: Optional[str]) -> Tuple[int, ...]:
    if not raw:
        return ()
    return tuple(int(p) for p in re.split(r"[.-]", raw.lstrip(".-")) if p)


def normalize_version(version: str) -> str:
    """Normalize a concrete version the way Composer does.

    ``1.2`` -> ``1.2.0.0``, ``v2.0-rc1`` -> ``2.0.0.0-RC1``,
    ``2.x-dev`` -> ``2.9999999.9999999.9999999-dev``, ``dev-main`` unchanged.

    Raises:
        ValueError: when the string is not a recognizable version.
    """
    text = version.strip()
    if not text:
        raise ValueError("Empty version string")
    if is_dev_branch(text):
        return "dev-" + text[4:]

    match = _CLASSICAL_RE.match(text)
    if match:
        parts = [match.group(1)] + [
            (match.group(i) or ".0")[1:] for i in range(2, 5)
        ]
        normalized = ".".join(str(int(p)) for p in parts)
        modifier = match.group(5)
        if modifier and _MODIFIER_ALIASES[modifier.lower()] != "stable":
            normalized += "-" + _MODIFIER_ALIASES[modifier.lower()]
            number = match.group(6)
            if number:
                normalized += number.lstrip(".-")
        if match.group(7):
            normalized += "-dev"
        return normalized

    match = _NUMBERED_BRANCH_RE.match(text)
    if match:
        pieces = [match.group(1)] + [p for p in match.group(2).split(".") if p]
        pieces = [str(BRANCH_PLACEHOLDER) if p in ("x", "X", "*") else p for p in pieces]
        while len(pieces) < 4:
            pieces.append(str(BRANCH_PLACEHOLDER))
        return ".".join(pieces[:4]) + "-dev"

    raise ValueError(f'Invalid version string "{version}"')


@dataclass(frozen=True)
class ParsedVersion:
    """A normalized, orderable view of a concrete version."""

    normalized: str
    release: Optional[semantic_version.Version]
    extra: int
    stability: Stability
    modifier: Tuple[int, ...]
    post_release: bool = False

    @property
    def is_branch(self) -> bool:
        return self.release is None

    def key(self) -> tuple:
        """Sort key within a stability level; branches have no key."""
        if self.release is None:
            raise ValueError(f"Branch {self.normalized} cannot be ordered")
        return (self.release, self.extra, self.stability, self.post_release, self.modifier)


def parse_version(version: str) -> ParsedVersion:
    """Normalize ``version`` and split it into comparable components."""
    normalized = normalize_version(version)
    if is_dev_branch(normalized):
        return ParsedVersion(normalized, None, 0, Stability.DEV, ())

    core, _, tail = normalized.partition("-")
    major, minor, patch, extra = (int(p) for p in core.split("."))
    release = semantic_version.Version(major=major, minor=minor, patch=patch)
    stability = parse_stability(normalized)
    modifier: Tuple[int, ...] = ()
    post_release = False
    if tail:
        m = re.match(r"^(patch|RC|beta|alpha)?([\d.]*)", tail, re.IGNORECASE)
        if m:
            post_release = (m.group(1) or "").lower() == "patch"
            modifier = _modifier_number(m.group(2))
    return ParsedVersion(normalized, release, extra, stability, modifier, post_release)
