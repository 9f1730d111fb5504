"""Error taxonomy and issue records shared by composition and preflight."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class Severity(str, Enum):
    """How an issue affects the render verdict."""
    CRITICAL = "critical"
    ADVISORY = "advisory"


class Issue(BaseModel):
    """One finding reported to the authoring UI."""

    scene_id: Optional[int] = Field(None, description="Scene the issue belongs to")
    scene_idx: Optional[int] = Field(None, description="Scene position at build time")
    field: str = Field(..., description="Offending field path")
    reason: str = Field(..., description="Human-readable explanation")
    code: str = Field(..., description="Machine-readable issue code")
    severity: Severity = Field(default=Severity.ADVISORY, description="Critical or advisory")
    utterance_id: Optional[int] = None
    balloon_id: Optional[int] = None
    telop_id: Optional[int] = None
    cue_id: Optional[int] = None

    @property
    def is_critical(self) -> bool:
        """Return True if this issue blocks rendering."""
        return self.severity == Severity.CRITICAL


class BuildError(Exception):
    """Base class for composition failures.

    Critical subclasses are raised and halt composition of one scene.
    Advisory subclasses are instantiated and collected, never raised.
    """

    code = "build_error"
    severity = Severity.CRITICAL

    def __init__(
        self,
        message: str,
        scene_id: Optional[int] = None,
        scene_idx: Optional[int] = None,
        field: str = "",
        **refs: Optional[int],
    ) -> None:
        super().__init__(message)
        self.message = message
        self.scene_id = scene_id
        self.scene_idx = scene_idx
        self.field = field
        self.refs = {k: v for k, v in refs.items() if v is not None}

    def to_issue(self) -> Issue:
        """Convert the error into a report entry."""
        return Issue(
            scene_id=self.scene_id,
            scene_idx=self.scene_idx,
            field=self.field,
            reason=self.message,
            code=self.code,
            severity=self.severity,
            **self.refs,
        )


class MissingAssetError(BuildError):
    """The backing asset for a scene's display kind is absent."""
    code = "missing_asset"
    severity = Severity.CRITICAL


class RelativeUrlError(BuildError):
    """An emitted asset reference is empty or not an absolute URL."""
    code = "relative_url"
    severity = Severity.CRITICAL


class InvalidIntervalError(BuildError):
    """A computed overlay or cue interval has end <= start."""
    code = "invalid_interval"
    severity = Severity.ADVISORY


class DanglingReferenceError(BuildError):
    """A voice-window overlay points at an utterance with no voice entry."""
    code = "dangling_reference"
    severity = Severity.ADVISORY


class BakedAssetMissingError(BuildError):
    """A balloon in baked text mode has no pre-rendered image."""
    code = "baked_asset_missing"
    severity = Severity.ADVISORY


class BuildRejectedError(Exception):
    """Raised when a build is requested while preflight reports critical errors."""

    def __init__(self, report) -> None:
        self.report = report
        count = len(report.errors)
        super().__init__(f"Build rejected: {count} critical error(s)")


class SceneNotFoundError(LookupError):
    """A sequencer operation referenced an unknown scene."""

    def __init__(self, scene_id: int) -> None:
        self.scene_id = scene_id
        super().__init__(f"Scene not found: {scene_id}")
