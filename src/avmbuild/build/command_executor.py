"""Command Executor.

This module runs external programs (git, cmake, ninja/make, idf.py, sh) for
the build pipeline and streams their output to the console.

Design:
    - One interface, two backends: LocalCommandExecutor runs idf.py on the
      host, DockerCommandExecutor runs it inside the espressif/idf image
    - Host commands (`run`) always execute on the host; only toolchain
      commands (`run_toolchain`) are translated for the container
    - A failed program is reported through ExecutionResult.returncode, never
      by raising; a program that cannot be launched raises
      ToolchainMissingError
    - Output is streamed line by line as it is produced, never suppressed
"""

import logging
import shutil
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import List, Optional, Sequence, Union

import psutil

from ..config import BuildConfig

logger = logging.getLogger(__name__)

CONTAINER_PROJECT_DIR = PurePosixPath("/project")
CONTAINER_TOOLCHAIN = "idf.py"

ESP_IDF_INSTALL_HINT = """ESP-IDF not found. Please install and set up ESP-IDF:

https://docs.espressif.com/projects/esp-idf/en/latest/esp32/get-started/

Or use --use-docker to build with Docker instead."""

DOCKER_INSTALL_HINT = """Docker not found. Please install Docker:

https://docs.docker.com/get-docker/"""

PathLike = Union[str, Path]


class ToolchainMissingError(Exception):
    """Raised when a required executable cannot be located or launched."""

    pass


@dataclass
class ExecutionResult:
    """Outcome of one external command invocation."""

    command: List[str]
    returncode: int
    output: str = ""

    @property
    def success(self) -> bool:
        return self.returncode == 0


def terminate_process_tree(pid: int, timeout: float = 3.0) -> int:
    """Terminate a process and all of its children.

    Children are terminated before the parent. Processes still alive after
    `timeout` seconds are killed.

    Args:
        pid: Root process ID
        timeout: Seconds to wait for graceful termination

    Returns:
        Number of processes signalled
    """
    try:
        root = psutil.Process(pid)
    except psutil.NoSuchProcess:
        return 0

    try:
        processes = root.children(recursive=True)
    except psutil.NoSuchProcess:
        processes = []
    processes = list(reversed(processes)) + [root]

    signalled: List[psutil.Process] = []
    for proc in processes:
        try:
            proc.terminate()
            signalled.append(proc)
            logger.debug("Terminated process %s", proc.pid)
        except psutil.NoSuchProcess:
            pass

    _gone, alive = psutil.wait_procs(signalled, timeout=timeout)
    for proc in alive:
        try:
            proc.kill()
            logger.warning("Force killed stubborn process %s", proc.pid)
        except psutil.NoSuchProcess:
            pass

    return len(signalled)


class CommandExecutor(ABC):
    """Runs external commands and captures their combined output.

    Subclasses decide how toolchain commands are launched; host commands
    behave the same for every backend.
    """

    def __init__(self, show_output: bool = True):
        """Initialize command executor.

        Args:
            show_output: Whether to echo command output to the console
        """
        self.show_output = show_output

    def run(
        self,
        program: PathLike,
        args: Sequence[PathLike],
        cwd: Optional[PathLike] = None,
    ) -> ExecutionResult:
        """Run a program on the host.

        Args:
            program: Executable name or path
            args: Program arguments
            cwd: Working directory (defaults to the current directory)

        Returns:
            ExecutionResult with exit status and combined stdout/stderr

        Raises:
            ToolchainMissingError: If the program cannot be launched
        """
        command = [str(program)] + [str(arg) for arg in args]
        return self._execute(command, Path(cwd) if cwd is not None else None)

    @abstractmethod
    def run_toolchain(
        self,
        args: Sequence[PathLike],
        cwd: PathLike,
        volume_root: Optional[PathLike] = None,
    ) -> ExecutionResult:
        """Run the toolchain entry point (idf.py) with logical arguments.

        Args:
            args: idf.py arguments (e.g. ["set-target", "esp32"])
            cwd: Directory the toolchain must run in
            volume_root: Directory tree the toolchain needs access to

        Returns:
            ExecutionResult for the invocation
        """

    @abstractmethod
    def ensure_available(self) -> Path:
        """Verify the toolchain entry point for this backend can be found.

        Returns:
            Resolved path of the required executable

        Raises:
            ToolchainMissingError: If the executable is not on PATH
        """

    @property
    @abstractmethod
    def description(self) -> str:
        """Human-readable backend description."""

    def _execute(self, command: List[str], cwd: Optional[Path]) -> ExecutionResult:
        if cwd is not None and not cwd.is_dir():
            raise FileNotFoundError(f"Working directory does not exist: {cwd}")

        logger.debug("Running %s (cwd=%s)", " ".join(command), cwd or Path.cwd())

        try:
            process = subprocess.Popen(
                command,
                cwd=str(cwd) if cwd is not None else None,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                errors="replace",
            )
        except FileNotFoundError as e:
            raise ToolchainMissingError(f"Executable not found: {command[0]}") from e
        except PermissionError as e:
            raise ToolchainMissingError(f"Executable is not runnable: {command[0]}") from e

        output_lines: List[str] = []
        try:
            assert process.stdout is not None
            for line in process.stdout:
                output_lines.append(line)
                if self.show_output:
                    print(line, end="", flush=True)
            process.stdout.close()
            returncode = process.wait()
        except KeyboardInterrupt:
            terminate_process_tree(process.pid)
            raise

        logger.debug("%s exited with status %d", command[0], returncode)
        return ExecutionResult(command=command, returncode=returncode, output="".join(output_lines))


class LocalCommandExecutor(CommandExecutor):
    """Runs idf.py directly from the host's ESP-IDF installation."""

    def __init__(self, toolchain_path: str = "idf.py", show_output: bool = True):
        """Initialize local executor.

        Args:
            toolchain_path: idf.py name (resolved via PATH) or explicit path
            show_output: Whether to echo command output to the console
        """
        super().__init__(show_output=show_output)
        self.toolchain_path = toolchain_path

    def run_toolchain(
        self,
        args: Sequence[PathLike],
        cwd: PathLike,
        volume_root: Optional[PathLike] = None,
    ) -> ExecutionResult:
        return self.run(self.toolchain_path, args, cwd=cwd)

    def ensure_available(self) -> Path:
        found = shutil.which(self.toolchain_path)
        if found is None:
            raise ToolchainMissingError(ESP_IDF_INSTALL_HINT)
        return Path(found)

    @property
    def description(self) -> str:
        return f"local ESP-IDF ({self.toolchain_path})"


class DockerCommandExecutor(CommandExecutor):
    """Runs idf.py inside an ESP-IDF Docker image.

    The volume root is mounted at /project and the working directory is
    mapped to the matching path below it:

        docker run --rm -v <root>:/project -w /project/<cwd rel root> <image> idf.py <args>
    """

    def __init__(self, image: str, docker_path: str = "docker", show_output: bool = True):
        """Initialize Docker executor.

        Args:
            image: Image tag (e.g. espressif/idf:v5.5.2)
            docker_path: Docker CLI name or path
            show_output: Whether to echo command output to the console
        """
        super().__init__(show_output=show_output)
        self.image = image
        self.docker_path = docker_path

    def container_command(
        self,
        args: Sequence[PathLike],
        cwd: PathLike,
        volume_root: Optional[PathLike] = None,
    ) -> List[str]:
        """Build the docker CLI arguments for a toolchain invocation.

        Raises:
            ValueError: If cwd lies outside volume_root
        """
        workdir = Path(cwd).resolve()
        root = Path(volume_root).resolve() if volume_root is not None else workdir

        try:
            relative = workdir.relative_to(root)
        except ValueError as e:
            raise ValueError(f"Working directory {workdir} is not inside mounted volume {root}") from e

        container_dir = CONTAINER_PROJECT_DIR.joinpath(*relative.parts)

        return [
            "run",
            "--rm",
            "-v",
            f"{root}:{CONTAINER_PROJECT_DIR}",
            "-w",
            str(container_dir),
            self.image,
            CONTAINER_TOOLCHAIN,
        ] + [str(arg) for arg in args]

    def run_toolchain(
        self,
        args: Sequence[PathLike],
        cwd: PathLike,
        volume_root: Optional[PathLike] = None,
    ) -> ExecutionResult:
        return self.run(self.docker_path, self.container_command(args, cwd, volume_root))

    def ensure_available(self) -> Path:
        found = shutil.which(self.docker_path)
        if found is None:
            raise ToolchainMissingError(DOCKER_INSTALL_HINT)
        return Path(found)

    @property
    def description(self) -> str:
        return f"ESP-IDF Docker image {self.image}"


def create_executor(config: BuildConfig, show_output: bool = True) -> CommandExecutor:
    """Create the executor matching the configured backend."""
    if config.use_docker:
        return DockerCommandExecutor(config.docker_image, show_output=show_output)
    return LocalCommandExecutor(config.idf_path, show_output=show_output)
