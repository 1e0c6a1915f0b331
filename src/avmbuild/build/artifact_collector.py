"""Collects built .avm libraries into the project's avm_deps directory."""

import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from .host_tools import host_build_dir
from .outcome import StageOutcome

STAGE_NAME = "collect-libraries"


@dataclass
class ArtifactSet:
    """Library bundles copied during one collection pass."""

    output_dir: Path
    files: List[Path] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.files)

    @property
    def names(self) -> List[str]:
        return [path.name for path in self.files]


class ArtifactCollector:
    """Copies every <repo>/build/libs/**/*.avm into a flat output directory.

    The output directory is recreated on every pass, so stale libraries from
    a previous build never survive.
    """

    def __init__(self, output_dir: Path, show_progress: bool = True):
        self.output_dir = Path(output_dir)
        self.show_progress = show_progress

    @staticmethod
    def discover(repo_path: Path) -> List[Path]:
        """Return .avm files under the host build's libs tree, sorted."""
        libs_dir = host_build_dir(repo_path) / "libs"
        if not libs_dir.is_dir():
            return []
        return sorted(path for path in libs_dir.rglob("*.avm") if path.is_file())

    def collect_files(self, repo_path: Path) -> ArtifactSet:
        if self.output_dir.exists():
            self._print(f"Removing existing {self.output_dir.name} folder...")
            shutil.rmtree(self.output_dir)

        self._print(f"Creating {self.output_dir.name} folder and copying libraries...")
        self.output_dir.mkdir(parents=True, exist_ok=True)

        artifacts = ArtifactSet(output_dir=self.output_dir)
        for source in self.discover(repo_path):
            # Same base name twice: the later file wins
            destination = self.output_dir / source.name
            shutil.copy2(source, destination)
            artifacts.files.append(destination)
            self._print(f"  Copied {source.name}")

        return artifacts

    def collect(self, repo_path: Path) -> StageOutcome:
        """Collect library bundles for repo_path.

        Returns:
            StageOutcome carrying the output directory; a warning is attached
            when no libraries were found
        """
        artifacts = self.collect_files(repo_path)

        if not artifacts.files:
            libs_dir = host_build_dir(repo_path) / "libs"
            warning = (
                f"No .avm files found in {libs_dir}. "
                "Re-run with --clean to rebuild the generic Unix libraries."
            )
            self._print(f"Warning: {warning}")
            return StageOutcome.ok(STAGE_NAME, artifact_path=self.output_dir, warnings=[warning])

        message = f"Copied {len(artifacts)} AVM libraries to {self.output_dir}"
        self._print(f"✓ {message}")
        return StageOutcome.ok(STAGE_NAME, artifact_path=self.output_dir, message=message)

    def _print(self, message: str) -> None:
        if self.show_progress:
            print(message)
