"""Composer constraint grammar compiled onto semantic_version specs.

Each OR-group of a Composer expression becomes one ``semantic_version.SimpleSpec``
built from plain comparator clauses. Specs are evaluated against the release
triple of a candidate only, so ranges and bare numbers ignore prerelease tags;
stability gating happens in the repository set. Exact or comparator atoms that
name a modifier (``2.0.0-RC1``) are compared against the full version key.
"""
from __future__ import annotations

import operator
import re
from dataclasses import dataclass, field
from typing import FrozenSet, List, Optional, Tuple

import semantic_version

from .version import normalize_version, is_dev_branch, parse_version

_STABILITY_FLAG_RE = re.compile(r"@(?:stable|RC|beta|alpha|dev)$", re.IGNORECASE)
_NUMBERS_RE = re.compile(r"^v?(\d+)(?:\.(\d+))?(?:\.(\d+))?(?:\.(\d+))?")
_WILDCARD_RE = re.compile(r"^v?(\d+)(?:\.(\d+))?(?:\.(\d+))?\.[*x]$", re.IGNORECASE)
_COMPARATOR_RE = re.compile(r"^(<>|!=|>=?|<=?|==?)\s*(.+)$")
_OPERATOR_SPACE_RE = re.compile(r"(<>|!=|>=?|<=?|==?|\^|~)\s+")

_KEY_OPERATORS = {
    "==": operator.eq,
    "!=": operator.ne,
    ">": operator.gt,
    ">=": operator.ge,
    "<": operator.lt,
    "<=": operator.le,
}


def _numbers(text: str) -> List[int]:
    """Leading numeric components of a version, ignoring any modifier."""
    match = _NUMBERS_RE.match(text.strip())
    if not match:
        raise ValueError(f'"{text}" does not start with a version number')
    return [int(g) for g in match.groups() if g is not None]


def _triple(parts: List[int]) -> str:
    padded = (list(parts) + [0, 0, 0])[:3]
    return "{}.{}.{}".format(*padded)


def _bump(parts: List[int], position: int) -> str:
    """Increment the component at 1-based ``position`` and zero the rest."""
    padded = (list(parts) + [0, 0, 0])[:max(3, position)]
    padded[position - 1] += 1
    for i in range(position, len(padded)):
        padded[i] = 0
    return _triple(padded[:3])


def _caret(text: str) -> List[str]:
    parts = _numbers(text)
    if parts[0] != 0 or len(parts) < 2:
        position = 1
    elif parts[1] != 0 or len(parts) < 3:
        position = 2
    else:
        position = 3
    return [f">={_triple(parts)}", f"<{_bump(parts, position)}"]


def _tilde(text: str) -> List[str]:
    parts = _numbers(text)
    position = max(1, len(parts) - 1)
    return [f">={_triple(parts)}", f"<{_bump(parts, position)}"]


def _wildcard(match: "re.Match[str]") -> List[str]:
    parts = [int(g) for g in match.groups() if g is not None]
    return [f">={_triple(parts)}", f"<{_bump(parts, len(parts))}"]


def _hyphen(low: str, high: str) -> List[str]:
    high_parts = _numbers(high)
    clauses = [f">={_triple(_numbers(low))}"]
    if len(high_parts) >= 3:
        clauses.append(f"<={_triple(high_parts)}")
    else:
        clauses.append(f"<{_bump(high_parts, len(high_parts))}")
    return clauses


def _operator(op: str) -> str:
    if op in ("=", "=="):
        return "=="
    if op == "<>":
        return "!="
    return op


def _comparator(op: str, text: str) -> List[str]:
    return [f"{_operator(op)}{_triple(_numbers(text))}"]


def _modifier_key(text: str) -> Optional[tuple]:
    """Full ordering key when ``text`` names a stability modifier, else None."""
    try:
        normalized = normalize_version(text)
    except ValueError:
        return None
    if "-" not in normalized:
        return None
    return parse_version(normalized).key()


@dataclass(frozen=True)
class _Group:
    """One AND-group: either a set of branch names or range clauses."""

    spec: Optional[semantic_version.SimpleSpec] = None
    branches: FrozenSet[str] = field(default_factory=frozenset)
    match_all: bool = False
    pinned: Tuple[Tuple[str, tuple], ...] = ()

    def matches(self, version: str) -> bool:
        if self.match_all:
            return True
        try:
            parsed = parse_version(version)
        except ValueError:
            return False
        if self.branches:
            return parsed.normalized in self.branches
        if parsed.release is None:
            return False
        if self.spec is not None and not self.spec.match(parsed.release):
            return False
        key = parsed.key()
        return all(_KEY_OPERATORS[op](key, bound) for op, bound in self.pinned)


@dataclass(frozen=True)
class CompiledConstraint:
    """A compiled Composer expression: a disjunction of groups."""

    text: str
    groups: Tuple[_Group, ...]

    def matches(self, version: str) -> bool:
        return any(group.matches(version) for group in self.groups)


def _tokenize(group: str) -> List[str]:
    group = _OPERATOR_SPACE_RE.sub(lambda m: m.group(1), group.strip())
    group = re.sub(r"\s+-\s+", " - ", group)
    return [t for t in re.split(r"\s*,\s*|\s+", group) if t]


def _compile_group(group: str) -> _Group:
    tokens = _tokenize(group)
    if not tokens:
        raise ValueError("empty constraint group")

    clauses: List[str] = []
    pinned: List[Tuple[str, tuple]] = []
    branches = set()
    i = 0
    while i < len(tokens):
        token = _STABILITY_FLAG_RE.sub("", tokens[i])
        if i + 2 < len(tokens) and tokens[i + 1] == "-":
            clauses.extend(_hyphen(token, _STABILITY_FLAG_RE.sub("", tokens[i + 2])))
            i += 3
            continue
        i += 1
        if token in ("*", "x", "X", ""):
            continue
        if is_dev_branch(token) or token.lower().endswith("-dev"):
            branches.add(normalize_version(token))
            continue
        if token.startswith("^"):
            clauses.extend(_caret(token[1:]))
            continue
        if token.startswith("~") and not token.startswith("~="):
            clauses.extend(_tilde(token[1:]))
            continue
        wildcard = _WILDCARD_RE.match(token)
        if wildcard:
            clauses.extend(_wildcard(wildcard))
            continue
        comparator = _COMPARATOR_RE.match(token)
        if comparator:
            op, text = _operator(comparator.group(1)), comparator.group(2)
        else:
            normalize_version(token)
            op, text = "==", token
        bound = _modifier_key(text)
        if bound is not None:
            pinned.append((op, bound))
        else:
            clauses.extend(_comparator(op, text))

    if branches:
        if clauses or pinned:
            raise ValueError("branch names cannot be combined with version ranges")
        return _Group(branches=frozenset(branches))
    if not clauses and not pinned:
        return _Group(match_all=True)
    spec = semantic_version.SimpleSpec(",".join(clauses)) if clauses else None
    return _Group(spec=spec, pinned=tuple(pinned))


def compile_expression(expression: str) -> CompiledConstraint:
    """Compile a Composer constraint expression.

    Raises:
        ValueError: when any part of the expression is not valid.
    """
    text = expression.strip()
    if not text:
        raise ValueError("empty constraint")
    groups = tuple(_compile_group(g) for g in re.split(r"\s*\|\|?\s*", text))
    return CompiledConstraint(text=text, groups=groups)
