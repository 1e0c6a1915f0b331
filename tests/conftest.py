"""Shared fixtures for avmbuild tests.

Recording executors replace subprocess launching so pipeline tests can
assert on the exact commands issued without git, cmake or ESP-IDF
installed.
"""

from pathlib import Path
from typing import Callable, Iterable, List, Optional

import pytest

from avmbuild.build.command_executor import (
    DockerCommandExecutor,
    ExecutionResult,
    LocalCommandExecutor,
    ToolchainMissingError,
)


class RecordingMixin:
    """Records commands instead of launching them.

    A command fails (exit status 1) when any of its elements is listed in
    fail_on. Programs listed in missing raise ToolchainMissingError.
    """

    def __init__(
        self,
        *args,
        fail_on: Iterable[str] = (),
        missing: Iterable[str] = (),
        on_call: Optional[Callable[[List[str], Optional[Path]], None]] = None,
        **kwargs,
    ):
        kwargs["show_output"] = False
        super().__init__(*args, **kwargs)
        self.fail_on = set(fail_on)
        self.missing = set(missing)
        self.on_call = on_call
        self.commands: List[List[str]] = []
        self.cwds: List[Optional[Path]] = []

    def _execute(self, command, cwd):
        if cwd is not None and not cwd.is_dir():
            raise FileNotFoundError(f"Working directory does not exist: {cwd}")
        if command[0] in self.missing:
            raise ToolchainMissingError(f"Executable not found: {command[0]}")

        self.commands.append(command)
        self.cwds.append(cwd)
        if self.on_call is not None:
            self.on_call(command, cwd)

        failed = any(part in self.fail_on for part in command)
        return ExecutionResult(command=command, returncode=1 if failed else 0, output="simulated output\n")

    def ensure_available(self) -> Path:
        if "toolchain" in self.missing:
            raise ToolchainMissingError("toolchain not found")
        return Path("/usr/local/bin/fake-toolchain")

    @property
    def programs(self) -> List[str]:
        return [command[0] for command in self.commands]


class RecordingExecutor(RecordingMixin, LocalCommandExecutor):
    pass


class RecordingDockerExecutor(RecordingMixin, DockerCommandExecutor):
    pass


class FakeAtomVMTree:
    """Minimal AtomVM working tree whose build commands produce outputs.

    Use `simulate` as an executor's on_call hook: cmake/ninja/make create the
    host tool outputs, `idf.py set-target` creates the chip build directory
    with mkimage.sh, and `sh mkimage.sh` writes the image.
    """

    LIBRARIES = ["atomvmlib.avm", "exavmlib.avm", "elixir_esp32boot.avm"]

    def __init__(self, root: Path):
        self.root = root
        self.platform = root / "src" / "platforms" / "esp32"
        self.platform.mkdir(parents=True)
        (self.platform / "sdkconfig.defaults").write_text('CONFIG_FREERTOS_HZ="1000"\n')
        self.chip: Optional[str] = None
        self.stale_seen_at_set_target: Optional[bool] = None

    @property
    def chip_build_dir(self) -> Path:
        return self.platform / "build"

    def create_host_outputs(self) -> None:
        libs = self.root / "build" / "libs"
        (self.root / "build" / "tools" / "packbeam").mkdir(parents=True, exist_ok=True)
        (self.root / "build" / "tools" / "packbeam" / "PackBEAM").write_text("#!/bin/sh\n")
        (libs / "esp32boot").mkdir(parents=True, exist_ok=True)
        (libs / "esp32boot" / "elixir_esp32boot.avm").write_bytes(b"boot")
        (libs / "atomvmlib").mkdir(parents=True, exist_ok=True)
        (libs / "atomvmlib" / "atomvmlib.avm").write_bytes(b"lib")
        (libs / "exavmlib" / "lib").mkdir(parents=True, exist_ok=True)
        (libs / "exavmlib" / "lib" / "exavmlib.avm").write_bytes(b"exlib")

    def simulate(self, command: List[str], cwd: Optional[Path]) -> None:
        program = Path(command[0]).name
        if program in ("ninja", "make"):
            self.create_host_outputs()
        elif "set-target" in command:
            self.chip = command[command.index("set-target") + 1]
            self.stale_seen_at_set_target = (self.chip_build_dir / "stale.o").exists()
            self.chip_build_dir.mkdir(parents=True, exist_ok=True)
            (self.chip_build_dir / "mkimage.sh").write_text("#!/bin/sh\n")
        elif program == "sh" and cwd is not None:
            (cwd / f"atomvm-{self.chip}.img").write_bytes(b"image")


@pytest.fixture
def atomvm_tree(tmp_path):
    """Create a fake AtomVM checkout."""
    return FakeAtomVMTree(tmp_path / "AtomVM")


@pytest.fixture
def recording_executor():
    """Factory for local recording executors."""
    return RecordingExecutor


@pytest.fixture
def recording_docker_executor():
    """Factory for Docker recording executors."""
    return RecordingDockerExecutor


@pytest.fixture
def atomvm_tree_factory():
    """Factory for fake AtomVM checkouts at arbitrary locations."""
    return FakeAtomVMTree
