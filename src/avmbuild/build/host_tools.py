"""Generic Unix host build of AtomVM tools.

The ESP32 image needs PackBEAM and the elixir_esp32boot.avm bundle, which
come from a host-native CMake build of the AtomVM tree in <repo>/build:

    cmake .. [-DCMAKE_PREFIX_PATH=<mbedtls>] [-GNinja] \\
        -DCMAKE_BUILD_TYPE=Release -DAVM_BUILD_RUNTIME_ONLY=ON
    ninja|make PackBEAM elixir_esp32boot exavmlib atomvmlib

If both outputs already exist the stage is skipped entirely.
"""

import logging
import shutil
from pathlib import Path
from typing import List, Optional, Tuple

from .command_executor import CommandExecutor
from .outcome import StageOutcome

logger = logging.getLogger(__name__)

STAGE_NAME = "host-tools"

HOST_BUILD_TARGETS = ["PackBEAM", "elixir_esp32boot", "exavmlib", "atomvmlib"]


def host_build_dir(repo_path: Path) -> Path:
    return Path(repo_path) / "build"


def packbeam_path(repo_path: Path) -> Path:
    return host_build_dir(repo_path) / "tools" / "packbeam" / "PackBEAM"


def esp32boot_path(repo_path: Path) -> Path:
    """Location of the Elixir boot bundle passed to mkimage.sh --boot."""
    return host_build_dir(repo_path) / "libs" / "esp32boot" / "elixir_esp32boot.avm"


class HostToolBuilder:
    """Builds PackBEAM and the runtime .avm bundles on the host."""

    def __init__(self, executor: CommandExecutor, cmake_path: str = "cmake", show_progress: bool = True):
        """Initialize host tool builder.

        Args:
            executor: Executor for cmake and the build driver
            cmake_path: CMake executable name or path
            show_progress: Whether to print progress messages
        """
        self.executor = executor
        self.cmake_path = cmake_path
        self.show_progress = show_progress

    @staticmethod
    def select_build_driver() -> Tuple[str, List[str]]:
        """Pick ninja when available, else make.

        Returns:
            Tuple of (driver executable, CMake generator arguments)
        """
        if shutil.which("ninja") is not None:
            return "ninja", ["-GNinja"]
        return "make", []

    @staticmethod
    def cmake_arguments(mbedtls_prefix: Optional[str], generator_args: List[str]) -> List[str]:
        args = [".."]
        if mbedtls_prefix:
            args.append(f"-DCMAKE_PREFIX_PATH={mbedtls_prefix}")
        args.extend(generator_args)
        args.extend(["-DCMAKE_BUILD_TYPE=Release", "-DAVM_BUILD_RUNTIME_ONLY=ON"])
        return args

    @staticmethod
    def outputs_present(repo_path: Path) -> bool:
        return packbeam_path(repo_path).exists() and esp32boot_path(repo_path).exists()

    def ensure_host_tools(
        self,
        repo_path: Path,
        mbedtls_prefix: Optional[str] = None,
        clean: bool = False,
    ) -> StageOutcome:
        """Ensure PackBEAM and elixir_esp32boot.avm exist, building if needed.

        Args:
            repo_path: AtomVM working tree
            mbedtls_prefix: Custom MbedTLS installation prefix
            clean: Remove <repo>/build before checking

        Returns:
            StageOutcome (skipped=True when the outputs were already present)
        """
        build_dir = host_build_dir(repo_path)

        if clean and build_dir.is_dir():
            self._print("Cleaning generic Unix build directory...")
            shutil.rmtree(build_dir)

        if self.outputs_present(repo_path):
            self._print("Generic Unix build tools and elixir_esp32boot already exist, skipping...")
            return StageOutcome.ok(STAGE_NAME, artifact_path=esp32boot_path(repo_path), skipped=True)

        self._print("Building generic Unix tools and elixir_esp32boot (required for ESP32 build)...")
        build_dir.mkdir(parents=True, exist_ok=True)

        driver, generator_args = self.select_build_driver()
        if driver == "ninja":
            self._print("Using Ninja as build system")
        else:
            self._print("Ninja not found, using Make as build system")

        if mbedtls_prefix:
            self._print(f"Using custom MbedTLS from: {mbedtls_prefix}")

        configure = self.executor.run(
            self.cmake_path, self.cmake_arguments(mbedtls_prefix, generator_args), cwd=build_dir
        )
        if not configure.success:
            return StageOutcome.failed(STAGE_NAME, "Failed to configure generic Unix build", configure.output)

        self._print("Building tools and elixir_esp32boot...")
        build = self.executor.run(driver, HOST_BUILD_TARGETS, cwd=build_dir)
        if not build.success:
            return StageOutcome.failed(STAGE_NAME, "Failed to build generic Unix tools", build.output)

        self._print("Generic Unix tools and elixir_esp32boot built successfully")
        return StageOutcome.ok(STAGE_NAME, artifact_path=esp32boot_path(repo_path))

    def _print(self, message: str) -> None:
        if self.show_progress:
            print(message)
