"""Source management for avmbuild.

This module handles the cache layout and the synchronization of AtomVM
source trees from git.
"""

from .cache import Cache
from .repository import (
    RepoMode,
    RepositoryState,
    RepositorySynchronizer,
    SourceMissingError,
    SynchronizationError,
)

__all__ = [
    "Cache",
    "RepoMode",
    "RepositoryState",
    "RepositorySynchronizer",
    "SourceMissingError",
    "SynchronizationError",
]
