"""Scene data model and the content a scene owns."""

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator


class DisplayKind(str, Enum):
    """Which asset backs the scene visually."""
    IMAGE = "image"
    COMIC = "comic"
    VIDEO = "video"


class TextRenderMode(str, Enum):
    """Who draws balloon text."""
    ENGINE = "engine"
    BAKED = "baked"
    NONE = "none"


class UtteranceRole(str, Enum):
    """Speaker role of an utterance."""
    NARRATION = "narration"
    DIALOGUE = "dialogue"


class DisplayPolicy(str, Enum):
    """When an overlay is visible within its scene."""
    ALWAYS_ON = "always_on"
    VOICE_WINDOW = "voice_window"
    MANUAL_WINDOW = "manual_window"


class ImageAsset(BaseModel):
    """Active still image or composited page."""

    id: Optional[int] = None
    url: Optional[str] = Field(None, description="Storage URL of the image")


class ClipAsset(BaseModel):
    """Active generated video clip."""

    id: Optional[int] = None
    url: Optional[str] = Field(None, description="Storage URL of the clip")
    status: str = Field(default="pending", description="Generation status")
    duration_sec: Optional[float] = Field(None, description="Clip length in seconds")

    @property
    def is_completed(self) -> bool:
        return self.status == "completed"


class VoiceAsset(BaseModel):
    """Legacy single voice track attached directly to a scene."""

    id: Optional[int] = None
    url: Optional[str] = None
    duration_ms: Optional[int] = Field(None, ge=0)


class MotionDescriptor(BaseModel):
    """Camera motion preset for still images."""

    preset_id: str = Field(..., description="Motion preset identifier")
    motion_type: str = Field(default="zoom", description="none, zoom, pan or combined")
    params: Dict[str, float] = Field(default_factory=dict)


class Utterance(BaseModel):
    """One unit of spoken text within a scene."""

    id: int = Field(..., description="Utterance identifier")
    order_no: int = Field(..., ge=1, description="1-based order within the scene")
    role: UtteranceRole = Field(default=UtteranceRole.NARRATION)
    character_key: Optional[str] = Field(None, description="Speaking character")
    text: str = Field(default="", description="Literal spoken text")
    audio_generation_id: Optional[int] = Field(None, description="Generated audio asset")
    audio_url: Optional[str] = Field(None, description="Generated audio URL")
    duration_ms: Optional[int] = Field(None, ge=0, description="Generated audio length")

    @property
    def has_audio(self) -> bool:
        """Return True once generated audio exists for this utterance."""
        return bool(self.audio_url) and bool(self.duration_ms)


class LegacyUtterance(BaseModel):
    """Utterance stored inline with a composited page (older projects)."""

    id: str
    text: str = ""
    audio_url: Optional[str] = None
    duration_ms: Optional[int] = Field(None, ge=0)


class Point(BaseModel):
    x: float = 0.5
    y: float = 0.5


class Size(BaseModel):
    w: float = 0.3
    h: float = 0.2


class Tail(BaseModel):
    enabled: bool = True
    tip_x: float = 0.5
    tip_y: float = 1.2


class Timing(BaseModel):
    """Explicit window used by manual_window overlays."""

    start_ms: Optional[int] = Field(None, ge=0)
    end_ms: Optional[int] = Field(None, ge=0)


class BalloonStyle(BaseModel):
    """Text styling used when the engine draws balloon text."""

    writing_mode: str = "horizontal"
    text_align: str = "center"
    font_family: str = "sans-serif"
    font_weight: int = 700
    font_size: int = 24
    line_height: float = 1.4
    padding: int = 12
    bg_color: str = "#FFFFFF"
    text_color: str = "#000000"
    border_color: str = "#000000"
    border_width: int = 2


class Balloon(BaseModel):
    """Speech balloon overlay, optionally tied to an utterance."""

    id: int
    utterance_id: Optional[int] = Field(None, description="Linked utterance, None when independent")
    position: Point = Field(default_factory=Point)
    size: Size = Field(default_factory=Size)
    tail: Tail = Field(default_factory=Tail)
    shape: str = Field(default="round", description="round, square, thought, shout or caption")
    display_policy: Optional[DisplayPolicy] = Field(None, description="Unset uses the preset default")
    timing: Optional[Timing] = None
    style: BalloonStyle = Field(default_factory=BalloonStyle)
    z_index: int = 10
    baked_image_url: Optional[str] = Field(None, description="Pre-rendered balloon image")
    baked_width_px: Optional[int] = None
    baked_height_px: Optional[int] = None


class Telop(BaseModel):
    """On-screen caption independent of balloons."""

    id: int
    utterance_id: Optional[int] = None
    text: str = ""
    display_policy: DisplayPolicy = Field(default=DisplayPolicy.VOICE_WINDOW)
    timing: Optional[Timing] = None
    position: Point = Field(default_factory=lambda: Point(x=0.5, y=0.9))
    width: float = 0.8
    style: str = Field(default="subtitle", description="subtitle, caption, title, emphasis or custom")
    text_align: str = "center"


class AudioCue(BaseModel):
    """Sound effect played at a scene-relative offset."""

    id: int
    name: str = "SFX"
    url: Optional[str] = None
    start_ms: int = Field(default=0, ge=0)
    end_ms: Optional[int] = Field(None, ge=0)
    duration_ms: Optional[int] = Field(None, ge=0, description="Source file length")
    volume: float = Field(default=0.8, ge=0.0, le=1.0)
    loop: bool = False
    fade_in_ms: int = Field(default=0, ge=0)
    fade_out_ms: int = Field(default=0, ge=0)
    is_active: bool = True


class Scene(BaseModel):
    """Represents a single scene in the project."""

    id: int = Field(..., description="Unique scene identifier")
    idx: int = Field(..., description="Visible rank (>0) or -id when hidden")
    is_hidden: bool = Field(default=False)
    title: str = ""
    dialogue: str = Field(default="", description="Free-form scene dialogue")
    display_kind: DisplayKind = Field(default=DisplayKind.IMAGE)
    duration_override_ms: Optional[int] = Field(None, description="Manual silent-scene length")
    text_render_mode: Optional[TextRenderMode] = None
    motion: Optional[MotionDescriptor] = None
    active_image: Optional[ImageAsset] = None
    active_comic: Optional[ImageAsset] = None
    active_clip: Optional[ClipAsset] = None
    active_voice: Optional[VoiceAsset] = None
    comic_utterances: List[LegacyUtterance] = Field(default_factory=list)
    utterances: List[Utterance] = Field(default_factory=list)
    balloons: List[Balloon] = Field(default_factory=list)
    telops: List[Telop] = Field(default_factory=list)
    cues: List[AudioCue] = Field(default_factory=list)

    class Config:
        """Pydantic config."""
        frozen = False

    @field_validator("utterances")
    @classmethod
    def _unique_order(cls, utterances: List[Utterance]) -> List[Utterance]:
        seen = set()
        for u in utterances:
            if u.order_no in seen:
                raise ValueError(f"duplicate utterance order_no {u.order_no}")
            seen.add(u.order_no)
        return utterances

    @property
    def is_visible(self) -> bool:
        return not self.is_hidden and self.idx > 0

    @property
    def render_mode(self) -> TextRenderMode:
        """Effective text mode; composited pages default to baked text."""
        if self.text_render_mode is not None:
            return self.text_render_mode
        if self.display_kind == DisplayKind.COMIC:
            return TextRenderMode.BAKED
        return TextRenderMode.ENGINE

    def ordered_utterances(self) -> List[Utterance]:
        """Return utterances sorted by order number."""
        return sorted(self.utterances, key=lambda u: u.order_no)
