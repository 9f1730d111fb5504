"""Manifest data model: a read snapshot of one project's authoring state."""

from typing import List, Optional
from pathlib import Path
from urllib.parse import urlparse
from pydantic import BaseModel, Field, model_validator
import yaml

from .audio import AudioTrack
from .project import BuildSettings, Project
from .scene import Scene


def is_absolute_url(url: Optional[str]) -> bool:
    """Return True if url carries an http(s) scheme."""
    if not url:
        return False
    parsed = urlparse(url)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def absolutize_url(url: Optional[str], site_url: str) -> Optional[str]:
    """Join a relative storage reference onto the site URL.

    Absolute and empty references are returned unchanged.
    """
    if not url or is_absolute_url(url) or not site_url:
        return url
    base = site_url.rstrip("/")
    path = url if url.startswith("/") else f"/{url}"
    return f"{base}{path}"


class Manifest(BaseModel):
    """Project snapshot read at build time."""

    project: Project = Field(..., description="Project identity")
    settings: BuildSettings = Field(default_factory=BuildSettings, description="Build settings")
    scenes: List[Scene] = Field(default_factory=list, description="All scenes, hidden included")
    audio_tracks: List[AudioTrack] = Field(default_factory=list, description="Background tracks")

    class Config:
        """Pydantic config."""
        frozen = False

    @model_validator(mode="after")
    def _check_snapshot(self) -> "Manifest":
        active = [t.id for t in self.audio_tracks if t.is_active]
        if len(active) > 1:
            raise ValueError(f"At most one active audio track allowed, got {active}")
        ids = [s.id for s in self.scenes]
        if len(ids) != len(set(ids)):
            raise ValueError("Duplicate scene ids in manifest")
        return self

    @classmethod
    def from_yaml(cls, path: Path) -> "Manifest":
        """Load manifest from YAML file."""
        with open(path, "r") as f:
            data = yaml.safe_load(f)
        return cls(**data)

    def to_yaml(self, path: Path) -> None:
        """Save manifest to YAML file."""
        with open(path, "w") as f:
            yaml.safe_dump(self.model_dump(mode="json"), f, default_flow_style=False, allow_unicode=True)

    def visible_scenes(self) -> List[Scene]:
        """Return visible scenes in index order."""
        return sorted((s for s in self.scenes if s.is_visible), key=lambda s: s.idx)

    def active_track(self) -> Optional[AudioTrack]:
        """Return the active background track, if any."""
        for track in self.audio_tracks:
            if track.is_active:
                return track
        return None

    def resolve_urls(self, site_url: str) -> "Manifest":
        """Return a copy with relative storage references made absolute."""
        resolved = self.model_copy(deep=True)
        if not site_url:
            return resolved

        for scene in resolved.scenes:
            for asset in (scene.active_image, scene.active_comic, scene.active_clip, scene.active_voice):
                if asset is not None:
                    asset.url = absolutize_url(asset.url, site_url)
            for utterance in scene.utterances:
                utterance.audio_url = absolutize_url(utterance.audio_url, site_url)
            for legacy in scene.comic_utterances:
                legacy.audio_url = absolutize_url(legacy.audio_url, site_url)
            for balloon in scene.balloons:
                balloon.baked_image_url = absolutize_url(balloon.baked_image_url, site_url)
            for cue in scene.cues:
                cue.url = absolutize_url(cue.url, site_url)
        for track in resolved.audio_tracks:
            track.url = absolutize_url(track.url, site_url)
        return resolved
