"""
Integration tests for AtomVM source synchronization against real git.

A local bare repository stands in for the AtomVM remote, so these tests need
git on PATH but no network access.
"""

import shutil
import subprocess

import pytest

from avmbuild.build import LocalCommandExecutor
from avmbuild.config import BuildConfig
from avmbuild.packages import Cache, RepoMode, RepositorySynchronizer, SynchronizationError

pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(shutil.which("git") is None, reason="git not installed"),
]


def git(*args, cwd):
    subprocess.run(["git", *args], cwd=cwd, check=True, capture_output=True)


@pytest.fixture
def remote(tmp_path):
    """Create a bare 'AtomVM.git' remote with a main branch and a tag."""
    work = tmp_path / "work"
    work.mkdir()
    git("init", "-b", "main", cwd=work)
    git("config", "user.email", "ci@example.com", cwd=work)
    git("config", "user.name", "CI", cwd=work)
    (work / "README.md").write_text("AtomVM\n")
    git("add", "README.md", cwd=work)
    git("commit", "-m", "initial", cwd=work)
    git("tag", "v0.6.5", cwd=work)

    bare = tmp_path / "AtomVM.git"
    git("clone", "--bare", str(work), str(bare), cwd=tmp_path)
    return bare


@pytest.fixture
def synchronizer(tmp_path):
    cache = Cache(cache_root=tmp_path / "cache")
    return RepositorySynchronizer(cache, LocalCommandExecutor(show_output=False), show_progress=False)


def test_clone_branch(remote, synchronizer):
    """Test a fresh clone on a branch is pulled."""
    state = synchronizer.resolve(BuildConfig(atomvm_url=str(remote), ref="main"))

    assert state.mode is RepoMode.BRANCH
    assert (state.path / "README.md").exists()
    assert state.path.name == "AtomVM"
    assert state.warnings == []


def test_tag_is_detached(remote, synchronizer):
    state = synchronizer.resolve(BuildConfig(atomvm_url=str(remote), ref="v0.6.5"))
    assert state.mode is RepoMode.DETACHED


def test_second_run_fetches(remote, synchronizer):
    """Test a cached clone is reused."""
    first = synchronizer.resolve(BuildConfig(atomvm_url=str(remote), ref="main"))
    second = synchronizer.resolve(BuildConfig(atomvm_url=str(remote), ref="v0.6.5"))

    assert first.path == second.path
    assert second.is_detached


def test_unknown_ref(remote, synchronizer):
    with pytest.raises(SynchronizationError) as exc_info:
        synchronizer.resolve(BuildConfig(atomvm_url=str(remote), ref="no-such-ref"))
    assert exc_info.value.step == "checkout"
