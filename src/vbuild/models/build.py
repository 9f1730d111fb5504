"""BuildRequest document models handed to the render service."""

from typing import Dict, List, Optional
from pydantic import BaseModel, Field

from .scene import BalloonStyle, DisplayPolicy, Point, Size, Tail

SCHEMA_VERSION = "1.5"


class _Frozen(BaseModel):
    class Config:
        """Pydantic config."""
        frozen = True


class Resolution(_Frozen):
    width: int
    height: int


class OutputBlock(_Frozen):
    """Encoding parameters for the render."""

    resolution: Resolution
    fps: int
    codec: str
    aspect_ratio: str
    preset: str


class Effect(_Frozen):
    type: str = Field(default="none", description="kenburns or none")
    zoom: float = 1.0
    pan: str = "center"


class Visual(_Frozen):
    """Backing asset chosen for a scene."""

    kind: str = Field(..., description="image, comic or video")
    source: str = Field(..., description="Asset URL")
    effect: Effect = Field(default_factory=Effect)


class MotionBlock(_Frozen):
    preset_id: str = "none"
    motion_type: str = "none"
    params: Dict[str, float] = Field(default_factory=dict)


class Fades(_Frozen):
    in_ms: int = 0
    out_ms: int = 0


class VoiceEntry(_Frozen):
    """One voiced utterance placed on the scene timeline."""

    utterance_id: Optional[int] = None
    role: str
    character_key: Optional[str] = None
    text: str = ""
    audio_url: str
    start_ms: int
    end_ms: int

    @property
    def duration_ms(self) -> int:
        return self.end_ms - self.start_ms


class BakedImageSize(_Frozen):
    width: int
    height: int


class BalloonEntry(_Frozen):
    """Balloon with its resolved scene-relative display window."""

    balloon_id: int
    utterance_id: Optional[int] = None
    text: str = ""
    start_ms: int
    end_ms: int
    display_policy: DisplayPolicy
    position: Point
    size: Size
    tail: Tail
    shape: str
    style: BalloonStyle
    z_index: int
    baked_image_url: Optional[str] = None
    baked_image_size: Optional[BakedImageSize] = None


class TelopEntry(_Frozen):
    telop_id: int
    utterance_id: Optional[int] = None
    text: str
    start_ms: int
    end_ms: int
    display_policy: DisplayPolicy
    position: Point
    width: float
    style: str
    text_align: str


class SfxEntry(_Frozen):
    """Sound-effect cue placed on the scene timeline."""

    cue_id: int
    name: str
    url: str
    start_ms: int
    end_ms: Optional[int] = None
    duration_ms: Optional[int] = None
    volume: float
    loop: bool
    fades: Fades


class SceneTimeline(_Frozen):
    """One scene with absolute placement and its per-track entries."""

    scene_id: int
    order: int
    title: str = ""
    start_ms: int
    duration_ms: int
    duration_reason: str
    text_render_mode: str
    visual: Visual
    motion: MotionBlock
    voices: List[VoiceEntry] = Field(default_factory=list)
    balloons: List[BalloonEntry] = Field(default_factory=list)
    telops: List[TelopEntry] = Field(default_factory=list)
    sfx: List[SfxEntry] = Field(default_factory=list)


class Timeline(_Frozen):
    scenes: List[SceneTimeline] = Field(default_factory=list)


class Ducking(_Frozen):
    volume: float
    attack_ms: int
    release_ms: int


class BgmBlock(_Frozen):
    """Project-wide background track; the renderer applies ducking."""

    track_id: int
    url: str
    volume: float
    loop: bool
    fades: Fades
    ducking: Optional[Ducking] = None
    video_start_ms: int = 0
    video_end_ms: Optional[int] = None
    audio_offset_ms: int = 0


class Summary(_Frozen):
    total_scenes: int
    total_duration_ms: int
    has_audio: bool
    scenes_with_voice: int
    has_bgm: bool = False
    has_video_clips: bool = False


class ProjectRef(_Frozen):
    id: int
    title: str = ""


class BuildRequest(_Frozen):
    """Versioned, immutable timeline document."""

    schema_version: str = Field(default=SCHEMA_VERSION)
    project: ProjectRef
    output: OutputBlock
    timeline: Timeline
    bgm: Optional[BgmBlock] = None
    summary: Summary
