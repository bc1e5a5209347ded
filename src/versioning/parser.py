"""Version expression parsing: stability suffix plus constraint grammar."""

import re
from typing import Optional

from errors import InvalidConstraintError

from .constraint import compile_expression
from .models import Constraint
from .version import Stability

_STABILITY_SUFFIX_RE = re.compile(r"@(stable|RC|beta|alpha|dev)$", re.IGNORECASE)


def split_stability_suffix(raw: str):
    """Return (expression, stability or None) using the trailing ``@flag`` rule.

    The expression is returned untouched apart from removing the suffix.
    """
    match = _STABILITY_SUFFIX_RE.search(raw)
    if not match:
        return raw, None
    return raw[: match.start()], Stability.from_token(match.group(1))


def parse_constraint(raw: Optional[str]) -> Constraint:
    """Parse a raw version expression such as ``^2.0@beta``.

    Args:
        raw: Version expression, or None for "any version".

    Returns:
        Constraint with the expression (suffix removed) and the override.

    Raises:
        InvalidConstraintError: if the remaining expression is not valid.
    """
    if raw is None:
        return Constraint()

    expression, override = split_stability_suffix(raw)
    if not expression.strip():
        return Constraint(expression=None, stability_override=override)

    try:
        compiled = compile_expression(expression)
    except ValueError as exc:
        raise InvalidConstraintError(raw, str(exc)) from exc
    return Constraint(expression=expression, stability_override=override, compiled=compiled)
