"""AtomVM source synchronization.

Resolves the configured source into a local working tree:

    local path given      -> used as-is, must exist
    .git already cached   -> git fetch origin, git checkout <ref>
    nothing cached        -> git clone <url>, git checkout <ref>

After checkout, `git symbolic-ref -q HEAD` tells whether the tree is on a
branch (then `git pull origin <ref>`) or detached at a tag or commit (left
alone). A failed pull only produces a warning because the checkout itself
already succeeded.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, List, Optional

from ..config import BuildConfig
from .cache import Cache

if TYPE_CHECKING:
    from ..build.command_executor import CommandExecutor, ExecutionResult

logger = logging.getLogger(__name__)


class SourceMissingError(Exception):
    """Raised when no usable AtomVM working tree can be established."""

    pass


class SynchronizationError(Exception):
    """Raised when a clone, fetch or checkout command fails."""

    def __init__(self, step: str, message: str, output: str = ""):
        super().__init__(message)
        self.step = step
        self.output = output


class RepoMode(Enum):
    """How the working tree relates to its reference."""

    LOCAL = "local"  # user-supplied checkout, not synchronized
    BRANCH = "branch"
    DETACHED = "detached"


@dataclass
class RepositoryState:
    """Resolved working tree.

    Attributes:
        path: Working tree directory
        ref: Checked out reference (None for LOCAL)
        mode: Branch, detached or unmanaged local checkout
        warnings: Non-fatal synchronization problems
    """

    path: Path
    ref: Optional[str] = None
    mode: RepoMode = RepoMode.LOCAL
    warnings: List[str] = field(default_factory=list)

    @property
    def is_detached(self) -> bool:
        return self.mode is RepoMode.DETACHED


class RepositorySynchronizer:
    """Clones or updates AtomVM sources in the cache."""

    def __init__(
        self,
        cache: Cache,
        executor: "CommandExecutor",
        git_path: str = "git",
        show_progress: bool = True,
    ):
        """Initialize synchronizer.

        Args:
            cache: Cache deciding where cloned trees live
            executor: Executor for git commands (only `run` is used, so git
                always runs on the host)
            git_path: Git executable name or path
            show_progress: Whether to print progress messages
        """
        self.cache = cache
        self.executor = executor
        self.git_path = git_path
        self.show_progress = show_progress

    def resolve(self, config: BuildConfig) -> RepositoryState:
        """Resolve the configured source into a working tree.

        Args:
            config: Build configuration

        Returns:
            RepositoryState whose path exists

        Raises:
            SourceMissingError: If a local path does not exist
            SynchronizationError: If clone, fetch or checkout fails
        """
        if config.atomvm_path is not None:
            path = Path(config.atomvm_path)
            if not path.is_dir():
                raise SourceMissingError(f"AtomVM path does not exist: {path}")
            logger.debug("Using local AtomVM checkout %s", path)
            return RepositoryState(path=path, mode=RepoMode.LOCAL)

        repo_path = self.cache.get_source_path(config.atomvm_url)
        state = RepositoryState(path=repo_path, ref=config.ref)

        if (repo_path / ".git").is_dir():
            self._update(state)
        else:
            self._clone(config.atomvm_url, state)

        self._checkout(state)
        self._pull_if_branch(state)

        if not state.path.is_dir():
            raise SourceMissingError(f"AtomVM working tree missing after synchronization: {state.path}")
        return state

    def _git(self, args: List[str], cwd: Optional[Path] = None) -> "ExecutionResult":
        return self.executor.run(self.git_path, args, cwd=cwd)

    def _clone(self, url: str, state: RepositoryState) -> None:
        self._print(f"Cloning {url}")
        self.cache.ensure_directories()

        result = self._git(["clone", url, str(state.path)], cwd=self.cache.cache_root)
        if not result.success:
            raise SynchronizationError("clone", f"Error cloning repository {url}", result.output)

    def _update(self, state: RepositoryState) -> None:
        self._print(f"Updating existing repository at {state.path}")

        result = self._git(["fetch", "origin"], cwd=state.path)
        if not result.success:
            raise SynchronizationError("fetch", "Error fetching from repository", result.output)

    def _checkout(self, state: RepositoryState) -> None:
        self._print(f"Checking out ref: {state.ref}")

        result = self._git(["checkout", str(state.ref)], cwd=state.path)
        if not result.success:
            raise SynchronizationError("checkout", f"Error checking out ref {state.ref}", result.output)

    def _pull_if_branch(self, state: RepositoryState) -> None:
        on_branch = self._git(["symbolic-ref", "-q", "HEAD"], cwd=state.path)

        if not on_branch.success:
            state.mode = RepoMode.DETACHED
            self._print("Checked out tag or commit (detached HEAD)")
            return

        state.mode = RepoMode.BRANCH
        self._print(f"Pulling latest changes for branch {state.ref}")

        result = self._git(["pull", "origin", str(state.ref)], cwd=state.path)
        if not result.success:
            warning = f"Could not pull changes for branch {state.ref}; using the checked out commit"
            logger.warning(warning)
            state.warnings.append(warning)

    def _print(self, message: str) -> None:
        if self.show_progress:
            print(message)
