"""
Build pipeline components for avmbuild.

This module provides the AtomVM ESP32 build pipeline including:
- Command execution (local ESP-IDF or ESP-IDF Docker image)
- sdkconfig.defaults patching
- Generic Unix host tools build
- AVM library collection
- ESP32 firmware build and image packaging
- Build orchestration
"""

from .artifact_collector import ArtifactCollector, ArtifactSet
from .command_executor import (
    CommandExecutor,
    DockerCommandExecutor,
    ExecutionResult,
    LocalCommandExecutor,
    ToolchainMissingError,
    create_executor,
)
from .config_patcher import ConfigPatcher
from .firmware_builder import FirmwareBuilder
from .host_tools import HostToolBuilder
from .orchestrator import BuildOrchestrator, PipelineResult
from .outcome import StageOutcome

__all__ = [
    "ArtifactCollector",
    "ArtifactSet",
    "BuildOrchestrator",
    "CommandExecutor",
    "ConfigPatcher",
    "DockerCommandExecutor",
    "ExecutionResult",
    "FirmwareBuilder",
    "HostToolBuilder",
    "LocalCommandExecutor",
    "PipelineResult",
    "StageOutcome",
    "ToolchainMissingError",
    "create_executor",
]
