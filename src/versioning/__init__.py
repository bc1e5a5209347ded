"""Version parsing, constraint matching and package selection."""

from .models import Constraint, PackageRef, SelectionResult, Stability
from .parser import parse_constraint
from .selector import PackageSelector

__all__ = [
    "Constraint",
    "PackageRef",
    "PackageSelector",
    "SelectionResult",
    "Stability",
    "parse_constraint",
]
