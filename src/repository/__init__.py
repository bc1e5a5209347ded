"""Package sources and the filtered repository set."""

from .base import ArrayRepository, CompositeRepository, Repository
from .composer import ComposerRepository
from .installed import InstalledRepository
from .repository_set import RepositorySet

__all__ = [
    "ArrayRepository",
    "ComposerRepository",
    "CompositeRepository",
    "InstalledRepository",
    "Repository",
    "RepositorySet",
]
