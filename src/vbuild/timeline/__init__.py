"""Timeline composition and build synthesis."""

from .duration import (
    DurationReason,
    DurationResult,
    resolve_duration,
    resolve_timeline_duration,
    DURATION_RULES,
)
from .visual import select_visual, resolve_motion
from .voice import VoiceTrack, build_voice_track
from .overlays import sync_balloons, sync_telops
from .audio import compose_bgm, compose_cues
from .compositor import Composition, compose_scene, compose_timeline
from .preflight import (
    AssetReport,
    PreflightReport,
    validate_assets,
    run_preflight,
)
from .serializer import (
    BuildArtifact,
    build_request,
    canonical_json,
    content_hash,
    write_artifact,
)

__all__ = [
    # Duration
    "DurationReason",
    "DurationResult",
    "resolve_duration",
    "resolve_timeline_duration",
    "DURATION_RULES",
    # Visual
    "select_visual",
    "resolve_motion",
    # Voice
    "VoiceTrack",
    "build_voice_track",
    # Overlays
    "sync_balloons",
    "sync_telops",
    # Audio
    "compose_bgm",
    "compose_cues",
    # Composition
    "Composition",
    "compose_scene",
    "compose_timeline",
    # Preflight
    "AssetReport",
    "PreflightReport",
    "validate_assets",
    "run_preflight",
    # Serializer
    "BuildArtifact",
    "build_request",
    "canonical_json",
    "content_hash",
    "write_artifact",
]
