"""Project identity, output presets and build settings."""

from typing import Any, Dict, Literal, Optional
from pydantic import BaseModel, Field

from .scene import DisplayPolicy


class Project(BaseModel):
    """Project identity carried into the build document."""

    id: int = Field(..., description="Project identifier")
    title: str = Field(default="", description="Project title")


AspectRatio = Literal["9:16", "16:9", "1:1"]
Resolution = Literal["1080p", "720p"]


class OutputPreset(BaseModel):
    """Platform-specific output defaults."""

    id: str
    label: str
    aspect_ratio: AspectRatio
    resolution: Resolution = "1080p"
    fps: int = 30
    balloon_policy_default: DisplayPolicy = DisplayPolicy.VOICE_WINDOW
    motion_default: str = Field(default="kenburns_soft", description="none, kenburns_soft or kenburns_medium")
    bgm_volume_default: float = Field(default=0.25, ge=0.0, le=1.0)
    ducking_enabled: bool = True


RESOLUTION_MAP: Dict[str, Dict[str, Dict[str, int]]] = {
    "1080p": {
        "9:16": {"width": 1080, "height": 1920},
        "16:9": {"width": 1920, "height": 1080},
        "1:1": {"width": 1080, "height": 1080},
    },
    "720p": {
        "9:16": {"width": 720, "height": 1280},
        "16:9": {"width": 1280, "height": 720},
        "1:1": {"width": 720, "height": 720},
    },
}

# Ken Burns zoom factor per motion default
MOTION_ZOOM = {
    "none": 1.0,
    "kenburns_soft": 1.05,
    "kenburns_medium": 1.1,
}

OUTPUT_PRESETS: Dict[str, OutputPreset] = {
    "yt_long": OutputPreset(
        id="yt_long",
        label="YouTube (landscape)",
        aspect_ratio="16:9",
    ),
    "short_vertical": OutputPreset(
        id="short_vertical",
        label="Vertical short",
        aspect_ratio="9:16",
        balloon_policy_default=DisplayPolicy.ALWAYS_ON,
        motion_default="kenburns_medium",
        bgm_volume_default=0.20,
    ),
    "yt_shorts": OutputPreset(
        id="yt_shorts",
        label="YouTube Shorts",
        aspect_ratio="9:16",
        balloon_policy_default=DisplayPolicy.ALWAYS_ON,
        motion_default="kenburns_medium",
        bgm_volume_default=0.20,
    ),
    "reels": OutputPreset(
        id="reels",
        label="Instagram Reels",
        aspect_ratio="9:16",
        balloon_policy_default=DisplayPolicy.ALWAYS_ON,
        motion_default="kenburns_medium",
        bgm_volume_default=0.18,
    ),
    "tiktok": OutputPreset(
        id="tiktok",
        label="TikTok",
        aspect_ratio="9:16",
        balloon_policy_default=DisplayPolicy.ALWAYS_ON,
        motion_default="kenburns_medium",
        bgm_volume_default=0.18,
    ),
    "custom": OutputPreset(
        id="custom",
        label="Custom",
        aspect_ratio="16:9",
        motion_default="none",
        ducking_enabled=False,
    ),
}

DEFAULT_PRESET = "yt_long"


def get_output_preset(preset_id: Optional[str]) -> OutputPreset:
    """Look up a preset, falling back to the landscape default."""
    return OUTPUT_PRESETS.get(preset_id or DEFAULT_PRESET, OUTPUT_PRESETS[DEFAULT_PRESET])


class BuildSettings(BaseModel):
    """Output and composition settings for one build."""

    preset: str = Field(default=DEFAULT_PRESET, description="Output preset id")
    aspect_ratio: AspectRatio = Field(default="16:9")
    resolution: Resolution = Field(default="1080p")
    fps: int = Field(default=30, gt=0)
    codec: str = Field(default="h264", description="h264 or h265")
    ken_burns: bool = Field(default=True, description="Animate plain images")
    ken_burns_zoom: float = Field(default=1.05, ge=1.0)
    ken_burns_pan: str = Field(default="center")
    balloon_policy_default: DisplayPolicy = DisplayPolicy.VOICE_WINDOW
    telops_enabled: bool = True
    bgm_volume_default: float = Field(default=0.25, ge=0.0, le=1.0, description="Background volume when the track sets none")
    ducking_enabled: bool = Field(default=True, description="Duck background tracks that set no ducking")

    class Config:
        """Pydantic config."""
        frozen = False

    @classmethod
    def from_preset(cls, preset_id: Optional[str] = None, **overrides: Any) -> "BuildSettings":
        """Create settings from a preset, letting explicit values win."""
        preset = get_output_preset(preset_id)
        zoom = MOTION_ZOOM.get(preset.motion_default, 1.0)
        values: Dict[str, Any] = {
            "preset": preset.id,
            "aspect_ratio": preset.aspect_ratio,
            "resolution": preset.resolution,
            "fps": preset.fps,
            "ken_burns": preset.motion_default != "none",
            "ken_burns_zoom": zoom,
            "balloon_policy_default": preset.balloon_policy_default,
            "bgm_volume_default": preset.bgm_volume_default,
            "ducking_enabled": preset.ducking_enabled,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    @property
    def dimensions(self) -> Dict[str, int]:
        """Return pixel width/height for the resolution and aspect ratio."""
        return dict(RESOLUTION_MAP[self.resolution][self.aspect_ratio])
