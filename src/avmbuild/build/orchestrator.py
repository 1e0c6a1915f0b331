"""
Build orchestration for AtomVM ESP32 firmware.

This module runs the full pipeline for one BuildConfig:
- Source synchronization (local checkout or cached git clone)
- Toolchain availability check (idf.py or docker)
- Generic Unix host tools (PackBEAM, elixir_esp32boot.avm)
- Library collection into avm_deps
- ESP32 firmware build and image packaging

Stages run strictly in order and the first failed stage ends the run. The
orchestrator reports a PipelineResult and never exits the process.
"""

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from ..config import BuildConfig
from ..packages import Cache, RepositoryState, RepositorySynchronizer, SourceMissingError, SynchronizationError
from .artifact_collector import STAGE_NAME as COLLECT_STAGE
from .artifact_collector import ArtifactCollector
from .command_executor import CommandExecutor, LocalCommandExecutor, ToolchainMissingError, create_executor
from .firmware_builder import STAGE_NAME as FIRMWARE_STAGE
from .firmware_builder import FirmwareBuilder, chip_build_dir, image_path
from .host_tools import STAGE_NAME as HOST_TOOLS_STAGE
from .host_tools import HostToolBuilder
from .outcome import StageOutcome


@dataclass
class PipelineResult:
    """Result of a complete pipeline run."""

    success: bool
    image_path: Optional[Path]
    build_dir: Optional[Path]
    build_time: float
    message: str
    warnings: List[str] = field(default_factory=list)
    outcomes: List[StageOutcome] = field(default_factory=list)
    repository: Optional[RepositoryState] = None

    @property
    def image_exists(self) -> bool:
        return self.image_path is not None and self.image_path.exists()

    @property
    def failed_stage(self) -> Optional[str]:
        for outcome in self.outcomes:
            if not outcome.success:
                return outcome.stage
        return None


class BuildOrchestrator:
    """
    Orchestrates the AtomVM ESP32 build pipeline.

    Example usage:
        config = BuildConfig(atomvm_path=Path("~/AtomVM").expanduser(), chip="esp32s3")
        result = BuildOrchestrator(config).run()
        if result.success:
            print(f"Image: {result.image_path}")
    """

    def __init__(
        self,
        config: BuildConfig,
        executor: Optional[CommandExecutor] = None,
        host_executor: Optional[CommandExecutor] = None,
        cache: Optional[Cache] = None,
        verbose: bool = False,
        show_progress: bool = True,
    ):
        """
        Initialize build orchestrator.

        Args:
            config: Build configuration
            executor: Executor for toolchain and build commands (default: from config backend)
            host_executor: Executor for git (default: a local executor)
            cache: Source cache (default: from config.cache_dir)
            verbose: Enable verbose output
            show_progress: Print stage progress messages
        """
        self.config = config
        self.verbose = verbose
        self.show_progress = show_progress
        self.executor = executor if executor is not None else create_executor(config)
        self.host_executor = host_executor if host_executor is not None else LocalCommandExecutor()
        self.cache = cache if cache is not None else Cache(cache_root=config.cache_dir)

        self.synchronizer = RepositorySynchronizer(self.cache, self.host_executor, show_progress=show_progress)
        self.host_tools = HostToolBuilder(self.executor, show_progress=show_progress)
        self.collector = ArtifactCollector(config.resolved_output_dir(), show_progress=show_progress)
        self.firmware = FirmwareBuilder(self.executor, show_progress=show_progress)

    def run(self) -> PipelineResult:
        """
        Execute the complete pipeline.

        Returns:
            PipelineResult with status, image path and per-stage outcomes
        """
        start_time = time.time()
        outcomes: List[StageOutcome] = []
        warnings: List[str] = []

        # Phase 1: Source
        self._phase(1, "Resolving AtomVM source...")
        try:
            repo = self.synchronizer.resolve(self.config)
        except SourceMissingError as e:
            outcomes.append(StageOutcome.failed("source", str(e)))
            return self._finish(start_time, outcomes, warnings, None)
        except SynchronizationError as e:
            outcomes.append(StageOutcome.failed("source", f"{e} (git {e.step} failed)", e.output))
            return self._finish(start_time, outcomes, warnings, None)
        except ToolchainMissingError as e:
            outcomes.append(StageOutcome.failed("source", f"git is required to fetch AtomVM: {e}"))
            return self._finish(start_time, outcomes, warnings, None)

        if not repo.path.is_dir():
            outcomes.append(StageOutcome.failed("source", f"AtomVM path does not exist: {repo.path}"))
            return self._finish(start_time, outcomes, warnings, repo)

        warnings.extend(repo.warnings)
        outcomes.append(StageOutcome.ok("source", artifact_path=repo.path, warnings=repo.warnings))

        self._print_banner(repo)

        # Phase 2: Toolchain
        self._phase(2, "Checking toolchain...")
        try:
            found = self.executor.ensure_available()
        except ToolchainMissingError as e:
            outcomes.append(StageOutcome.failed("toolchain", str(e)))
            return self._finish(start_time, outcomes, warnings, repo)
        self._print(f"      Found {self.executor.description}: {found}")
        outcomes.append(StageOutcome.ok("toolchain", artifact_path=found))

        # Phases 3-5: build stages
        stages = [
            (3, HOST_TOOLS_STAGE, "Ensuring generic Unix host tools...",
             lambda: self.host_tools.ensure_host_tools(repo.path, self.config.mbedtls_prefix, self.config.clean)),
            (4, COLLECT_STAGE, "Collecting AVM libraries...",
             lambda: self.collector.collect(repo.path)),
            (5, FIRMWARE_STAGE, f"Building AtomVM for {self.config.chip}...",
             lambda: self.firmware.build(repo.path, self.config.chip, self.config.clean)),
        ]

        for number, name, title, stage in stages:
            self._phase(number, title)
            try:
                outcome = stage()
            except ToolchainMissingError as e:
                outcome = StageOutcome.failed("toolchain", str(e))
            except OSError as e:
                outcome = StageOutcome.failed(name, str(e))
            outcomes.append(outcome)
            warnings.extend(outcome.warnings)
            if not outcome.success:
                return self._finish(start_time, outcomes, warnings, repo)

        expected_image = image_path(repo.path, self.config.chip).resolve()
        if not expected_image.exists():
            warnings.append(
                "Build completed but image file not found at expected location:\n"
                f"{expected_image}\n"
                "Please check the build output above for the actual location."
            )

        return self._finish(start_time, outcomes, warnings, repo, expected_image)

    def _finish(
        self,
        start_time: float,
        outcomes: List[StageOutcome],
        warnings: List[str],
        repo: Optional[RepositoryState],
        expected_image: Optional[Path] = None,
    ) -> PipelineResult:
        build_time = time.time() - start_time
        failed = next((outcome for outcome in outcomes if not outcome.success), None)
        build_dir = chip_build_dir(repo.path).resolve() if repo is not None else None

        if failed is not None:
            return PipelineResult(
                success=False,
                image_path=None,
                build_dir=build_dir,
                build_time=build_time,
                message=failed.message,
                warnings=warnings,
                outcomes=outcomes,
                repository=repo,
            )

        return PipelineResult(
            success=True,
            image_path=expected_image,
            build_dir=build_dir,
            build_time=build_time,
            message=f"Successfully built AtomVM for {self.config.chip}",
            warnings=warnings,
            outcomes=outcomes,
            repository=repo,
        )

    def _print_banner(self, repo: RepositoryState) -> None:
        self._print("")
        self._print(f"Building AtomVM for {self.config.chip} from source")
        self._print(f"Repository: {repo.path}")
        self._print(f"Chip: {self.config.chip}")
        self._print(f"Clean build: {str(self.config.clean).lower()}")
        self._print("")

    def _phase(self, number: int, title: str) -> None:
        if self.verbose:
            self._print(f"[{number}/5] {title}")

    def _print(self, message: str) -> None:
        if self.show_progress:
            print(message)
