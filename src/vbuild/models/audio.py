"""Project-level background track model."""

from typing import Optional
from pydantic import BaseModel, Field


class DuckingProfile(BaseModel):
    """Lower the background track while voices play."""

    enabled: bool = Field(default=False)
    volume: float = Field(default=0.12, ge=0.0, le=1.0, description="Volume while ducked")
    attack_ms: int = Field(default=120, ge=0, description="Transition into the ducked level")
    release_ms: int = Field(default=220, ge=0, description="Transition back to full level")


class AudioTrack(BaseModel):
    """Background music running through the whole video."""

    id: int = Field(..., description="Track identifier")
    url: Optional[str] = Field(None, description="Storage URL of the source file")
    duration_ms: Optional[int] = Field(None, ge=0)
    volume: Optional[float] = Field(None, ge=0.0, le=1.0, description="None uses the preset default")
    loop: bool = True
    fade_in_ms: int = Field(default=800, ge=0)
    fade_out_ms: int = Field(default=800, ge=0)
    ducking: Optional[DuckingProfile] = Field(None, description="None uses the preset default")
    video_start_ms: int = Field(default=0, ge=0, description="Where the track starts in the video")
    video_end_ms: Optional[int] = Field(None, ge=0, description="Where it stops; None runs to the end")
    audio_offset_ms: int = Field(default=0, ge=0, description="Playback offset into the source file")
    is_active: bool = True
