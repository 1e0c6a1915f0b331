"""Cache management for synchronized AtomVM source trees.

Cache Structure:
    _build/
    └── atomvm_source/          # cache root (or --cache-dir / AVMBUILD_CACHE_DIR)
        └── {repo_name}/        # one working tree per repository name
            ├── .git/
            ├── build/          # host tools build (PackBEAM, libs/*.avm)
            └── src/platforms/esp32/build/
                                # chip build (atomvm-{chip}.img)

Trees are keyed by repository name only, so two URLs ending in the same
name share one working tree. The synchronizer re-checks out the requested
ref on every run, which keeps that sharing safe for sequential use.
"""

from pathlib import Path
from typing import Optional
from urllib.parse import urlparse


class Cache:
    """Manages the avmbuild source cache directory structure."""

    def __init__(self, project_dir: Optional[Path] = None, cache_root: Optional[Path] = None):
        """Initialize cache manager.

        Args:
            project_dir: Project directory. If None, uses current directory.
            cache_root: Explicit cache root. If None, uses project_dir/_build/atomvm_source.
        """
        if project_dir is None:
            project_dir = Path.cwd()

        self.project_dir = Path(project_dir).resolve()

        if cache_root is not None:
            self.cache_root = Path(cache_root).resolve()
        else:
            self.cache_root = self.project_dir / "_build" / "atomvm_source"

    @staticmethod
    def repo_name_from_url(url: str) -> str:
        """Derive the repository name used as cache key.

        Examples:
            https://github.com/atomvm/AtomVM      -> AtomVM
            https://github.com/atomvm/AtomVM.git  -> AtomVM
            git@github.com:atomvm/AtomVM.git      -> AtomVM

        Args:
            url: Git URL

        Returns:
            Repository name

        Raises:
            ValueError: If no name can be derived from the URL
        """
        path = urlparse(url).path if "://" in url else url.rsplit(":", 1)[-1]
        name = path.rstrip("/").rsplit("/", 1)[-1]
        if name.endswith(".git"):
            name = name[: -len(".git")]
        if not name:
            raise ValueError(f"Cannot derive repository name from URL: {url}")
        return name

    def get_source_path(self, url: str) -> Path:
        """Get the working tree location for a repository URL."""
        return self.cache_root / self.repo_name_from_url(url)

    def ensure_directories(self) -> None:
        """Create the cache root if it doesn't exist."""
        self.cache_root.mkdir(parents=True, exist_ok=True)

    def __repr__(self) -> str:
        return f"Cache(cache_root={self.cache_root})"
