"""Scene duration resolution.

A scene's duration is not stored; it is derived from the first matching rule
in DURATION_RULES. Each rule returns a DurationResult or None, so the cascade
stays inspectable as data and every result carries the reason the UI shows.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Tuple

from ..models.scene import DisplayKind, Scene
from .timing import (
    AUDIO_PADDING_MS,
    DEFAULT_SCENE_DURATION_MS,
    clamp_duration,
    estimate_text_ms,
)
from .voice import VoiceTrack, build_voice_track


class DurationReason(str, Enum):
    """Why a scene has the duration it has."""
    VIDEO = "video"
    VOICE = "voice"
    MANUAL = "manual"
    ESTIMATE = "estimate"
    DEFAULT = "default"


@dataclass(frozen=True)
class DurationResult:
    duration_ms: int
    reason: DurationReason
    rule: str = ""


DurationRule = Callable[[Scene, VoiceTrack], Optional[DurationResult]]


def _video_clip(scene: Scene, track: VoiceTrack) -> Optional[DurationResult]:
    clip = scene.active_clip
    if scene.display_kind != DisplayKind.VIDEO or clip is None:
        return None
    if not clip.is_completed or not clip.duration_sec:
        return None
    return DurationResult(round(clip.duration_sec * 1000), DurationReason.VIDEO)


def _utterance_voice(scene: Scene, track: VoiceTrack) -> Optional[DurationResult]:
    if track.voiced_ms <= 0:
        return None
    return DurationResult(track.cursor_ms + AUDIO_PADDING_MS, DurationReason.VOICE)


def _manual_override(scene: Scene, track: VoiceTrack) -> Optional[DurationResult]:
    if scene.duration_override_ms is None or scene.duration_override_ms <= 0:
        return None
    return DurationResult(scene.duration_override_ms, DurationReason.MANUAL)


def _legacy_page_utterances(scene: Scene, track: VoiceTrack) -> Optional[DurationResult]:
    if scene.display_kind != DisplayKind.COMIC or not scene.comic_utterances:
        return None
    total = sum(u.duration_ms or 0 for u in scene.comic_utterances)
    if total > 0:
        return DurationResult(total + AUDIO_PADDING_MS, DurationReason.VOICE)
    text = "".join(u.text for u in scene.comic_utterances)
    if text:
        return DurationResult(estimate_text_ms(text) + AUDIO_PADDING_MS, DurationReason.ESTIMATE)
    return None


def _legacy_voice(scene: Scene, track: VoiceTrack) -> Optional[DurationResult]:
    voice = scene.active_voice
    if voice is None or not voice.duration_ms:
        return None
    return DurationResult(voice.duration_ms + AUDIO_PADDING_MS, DurationReason.VOICE)


def _dialogue_estimate(scene: Scene, track: VoiceTrack) -> Optional[DurationResult]:
    if not scene.dialogue:
        return None
    return DurationResult(estimate_text_ms(scene.dialogue) + AUDIO_PADDING_MS, DurationReason.ESTIMATE)


def _silent_default(scene: Scene, track: VoiceTrack) -> Optional[DurationResult]:
    return DurationResult(DEFAULT_SCENE_DURATION_MS, DurationReason.DEFAULT)


# First match wins.
DURATION_RULES: List[Tuple[str, DurationRule]] = [
    ("video_clip", _video_clip),
    ("utterance_voice", _utterance_voice),
    ("manual_override", _manual_override),
    ("legacy_page_utterances", _legacy_page_utterances),
    ("legacy_voice", _legacy_voice),
    ("dialogue_estimate", _dialogue_estimate),
    ("silent_default", _silent_default),
]


def resolve_duration(scene: Scene, track: Optional[VoiceTrack] = None) -> DurationResult:
    """Resolve a scene's duration.

    Args:
        scene: Scene to measure.
        track: Voice track already built for the scene. Built if omitted.

    Returns:
        DurationResult clamped to [MIN_DURATION_MS, MAX_DURATION_MS] with the
        reason and name of the rule that produced it.
    """
    if track is None:
        track = build_voice_track(scene)

    for name, rule in DURATION_RULES:
        result = rule(scene, track)
        if result is not None:
            break

    return DurationResult(clamp_duration(result.duration_ms), result.reason, name)


def resolve_timeline_duration(scene: Scene, track: Optional[VoiceTrack] = None) -> DurationResult:
    """Resolve the duration a scene occupies on the emitted timeline.

    A scene that emits voice entries lasts for its voice track plus padding,
    whichever cascade rule would match; the cursor counts voiceless utterances
    laid between voiced ones. Scenes without voice entries use
    resolve_duration.
    """
    if track is None:
        track = build_voice_track(scene)

    if track.has_voice:
        return DurationResult(
            clamp_duration(track.cursor_ms + AUDIO_PADDING_MS), DurationReason.VOICE, "voice_track"
        )
    return resolve_duration(scene, track)
