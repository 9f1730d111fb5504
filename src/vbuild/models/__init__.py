"""Data models for the video build engine."""

from .scene import (
    Scene,
    Utterance,
    Balloon,
    Telop,
    AudioCue,
    DisplayKind,
    DisplayPolicy,
    TextRenderMode,
    UtteranceRole,
)
from .audio import AudioTrack, DuckingProfile
from .project import Project, BuildSettings, OutputPreset, get_output_preset
from .manifest import Manifest
from .build import BuildRequest

__all__ = [
    "Scene",
    "Utterance",
    "Balloon",
    "Telop",
    "AudioCue",
    "DisplayKind",
    "DisplayPolicy",
    "TextRenderMode",
    "UtteranceRole",
    "AudioTrack",
    "DuckingProfile",
    "Project",
    "BuildSettings",
    "OutputPreset",
    "get_output_preset",
    "Manifest",
    "BuildRequest",
]
