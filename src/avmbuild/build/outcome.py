"""Stage outcomes for the build pipeline.

Every pipeline stage returns a StageOutcome instead of raising or exiting,
so callers decide whether a failure ends the run.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional


@dataclass(frozen=True)
class StageOutcome:
    """Result of a single pipeline stage.

    Attributes:
        stage: Stage name (e.g. "host-tools", "firmware")
        success: Whether the stage succeeded
        artifact_path: Artifact produced by a successful stage, if any
        message: Failure reason or success summary
        output: Captured command output of the failing command
        warnings: Non-fatal problems noticed while the stage ran
        skipped: True when the stage found its outputs already in place
    """

    stage: str
    success: bool
    artifact_path: Optional[Path] = None
    message: str = ""
    output: str = ""
    warnings: List[str] = field(default_factory=list)
    skipped: bool = False

    @classmethod
    def ok(
        cls,
        stage: str,
        artifact_path: Optional[Path] = None,
        message: str = "",
        warnings: Optional[List[str]] = None,
        skipped: bool = False,
    ) -> "StageOutcome":
        return cls(
            stage=stage,
            success=True,
            artifact_path=artifact_path,
            message=message,
            warnings=list(warnings or []),
            skipped=skipped,
        )

    @classmethod
    def failed(cls, stage: str, reason: str, output: str = "") -> "StageOutcome":
        return cls(stage=stage, success=False, message=reason, output=output)
