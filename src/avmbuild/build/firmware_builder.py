"""
ESP32 firmware build for AtomVM.

Drives ESP-IDF in <repo>/src/platforms/esp32:

1. Optionally remove the chip build directory
2. Point sdkconfig.defaults at the Elixir partition table
3. idf.py set-target <chip>
4. idf.py reconfigure
5. idf.py build
6. build/mkimage.sh --boot <elixir_esp32boot.avm>

The partition table must be configured before set-target, since set-target
regenerates sdkconfig from sdkconfig.defaults.
"""

import shutil
from pathlib import Path
from typing import Optional

from .command_executor import CommandExecutor
from .config_patcher import ConfigPatcher
from .host_tools import esp32boot_path
from .outcome import StageOutcome

STAGE_NAME = "firmware"

PARTITION_TABLE_KEY = "CONFIG_PARTITION_TABLE_CUSTOM_FILENAME"
ELIXIR_PARTITION_TABLE = "partitions-elixir.csv"


def platform_dir(repo_path: Path) -> Path:
    return Path(repo_path) / "src" / "platforms" / "esp32"


def chip_build_dir(repo_path: Path) -> Path:
    return platform_dir(repo_path) / "build"


def image_path(repo_path: Path, chip: str) -> Path:
    """Expected flashable image produced by mkimage.sh."""
    return chip_build_dir(repo_path) / f"atomvm-{chip}.img"


class FirmwareBuilder:
    """Configures, compiles and packages AtomVM for one ESP32 chip."""

    def __init__(
        self,
        executor: CommandExecutor,
        patcher: Optional[ConfigPatcher] = None,
        shell: str = "sh",
        show_progress: bool = True,
    ):
        """Initialize firmware builder.

        Args:
            executor: Executor whose backend runs idf.py
            patcher: sdkconfig.defaults patcher
            shell: Shell used to run mkimage.sh on the host
            show_progress: Whether to print progress messages
        """
        self.executor = executor
        self.patcher = patcher if patcher is not None else ConfigPatcher(show_progress=show_progress)
        self.shell = shell
        self.show_progress = show_progress

    def configure_partitions(self, repo_path: Path) -> bool:
        """Select the Elixir partition table in sdkconfig.defaults."""
        self._print(f"Configuring Elixir partition table ({ELIXIR_PARTITION_TABLE})...")
        defaults = platform_dir(repo_path) / "sdkconfig.defaults"
        return self.patcher.apply_setting(defaults, PARTITION_TABLE_KEY, ELIXIR_PARTITION_TABLE)

    def build(self, repo_path: Path, chip: str, clean: bool = False) -> StageOutcome:
        """Build the flashable image for chip.

        Args:
            repo_path: AtomVM working tree
            chip: Target chip identifier
            clean: Remove the chip build directory first

        Returns:
            StageOutcome whose artifact_path is the expected image path
        """
        platform = platform_dir(repo_path)
        build_dir = chip_build_dir(repo_path)

        if clean and build_dir.is_dir():
            self._print("Cleaning build directory...")
            shutil.rmtree(build_dir)

        self._print(f"Configuring build for {chip}...")
        self.configure_partitions(repo_path)

        result = self.executor.run_toolchain(["set-target", chip], cwd=platform, volume_root=repo_path)
        if not result.success:
            return StageOutcome.failed(STAGE_NAME, "Failed to set target chip", result.output)

        self._print("Reconfiguring to apply Elixir partitions...")
        result = self.executor.run_toolchain(["reconfigure"], cwd=platform, volume_root=repo_path)
        if not result.success:
            return StageOutcome.failed(STAGE_NAME, "Build failed", result.output)

        self._print("Building AtomVM... (this may take several minutes)")
        result = self.executor.run_toolchain(["build"], cwd=platform, volume_root=repo_path)
        if not result.success:
            return StageOutcome.failed(STAGE_NAME, "Build failed", result.output)

        return self._create_image(repo_path, chip)

    def _create_image(self, repo_path: Path, chip: str) -> StageOutcome:
        # Absolute paths: the Docker backend may have run in another directory
        abs_build_dir = chip_build_dir(repo_path).resolve()
        mkimage_script = abs_build_dir / "mkimage.sh"
        # TODO: drop --boot once AtomVM#1163 lands and mkimage.sh finds the Elixir boot bundle itself
        boot_avm = esp32boot_path(Path(repo_path).resolve())

        self._print("Creating flashable image...")
        result = self.executor.run(self.shell, [mkimage_script, "--boot", boot_avm], cwd=abs_build_dir)
        if not result.success:
            return StageOutcome.failed(STAGE_NAME, "Failed to create image", result.output)

        return StageOutcome.ok(STAGE_NAME, artifact_path=abs_build_dir / f"atomvm-{chip}.img")

    def _print(self, message: str) -> None:
        if self.show_progress:
            print(message)
