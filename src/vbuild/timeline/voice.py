"""Voice timeline construction.

Utterances are laid end to end on one cursor. Every utterance advances the
cursor, but only utterances with generated audio emit a voice entry; the
renderer rejects entries without a source.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, NamedTuple, Optional

from ..models.build import VoiceEntry
from ..models.scene import Scene, Utterance, UtteranceRole
from .timing import estimate_text_ms

logger = logging.getLogger(__name__)


class UtteranceWindow(NamedTuple):
    start_ms: int
    end_ms: int
    text: str


@dataclass
class VoiceTrack:
    """Voice entries for one scene plus the cursor they were laid on."""

    entries: List[VoiceEntry] = field(default_factory=list)
    cursor_ms: int = 0
    voiced_ms: int = 0
    windows: Dict[int, UtteranceWindow] = field(default_factory=dict)
    texts: Dict[int, str] = field(default_factory=dict)

    @property
    def has_voice(self) -> bool:
        return bool(self.entries)

    def window_for(self, utterance_id: Optional[int]) -> Optional[UtteranceWindow]:
        """Return the voiced window of an utterance, or None if it emitted no entry."""
        if utterance_id is None:
            return None
        return self.windows.get(utterance_id)

    def text_for(self, utterance_id: Optional[int]) -> str:
        """Return an utterance's text whether or not it was voiced."""
        if utterance_id is None:
            return ""
        return self.texts.get(utterance_id, "")


def utterance_duration_ms(utterance: Utterance) -> int:
    """Effective length of an utterance: its audio, else a text estimate."""
    if utterance.duration_ms:
        return utterance.duration_ms
    return estimate_text_ms(utterance.text)


def build_voice_track(scene: Scene) -> VoiceTrack:
    """Lay a scene's utterances onto a cumulative voice track.

    Args:
        scene: Scene whose utterances to place.

    Returns:
        VoiceTrack with one entry per voiced utterance, the final cursor
        position, and the utterance-to-window map used by overlays.
    """
    track = VoiceTrack()
    utterances = scene.ordered_utterances()

    if not utterances:
        return _legacy_voice_track(scene, track)

    for utterance in utterances:
        track.texts[utterance.id] = utterance.text
        start_ms = track.cursor_ms
        end_ms = start_ms + utterance_duration_ms(utterance)
        track.cursor_ms = end_ms

        if not utterance.has_audio:
            logger.debug(
                f"Scene {scene.id}: utterance {utterance.id} has no audio, "
                f"advancing cursor to {end_ms}ms"
            )
            continue

        track.voiced_ms += utterance.duration_ms
        track.windows[utterance.id] = UtteranceWindow(start_ms, end_ms, utterance.text)
        track.entries.append(VoiceEntry(
            utterance_id=utterance.id,
            role=utterance.role.value,
            character_key=utterance.character_key,
            text=utterance.text,
            audio_url=utterance.audio_url,
            start_ms=start_ms,
            end_ms=end_ms,
        ))

    return track


def _legacy_voice_track(scene: Scene, track: VoiceTrack) -> VoiceTrack:
    # Scenes predating utterances carry one voice asset for the whole dialogue.
    voice = scene.active_voice
    if voice is None or not voice.url or not voice.duration_ms:
        return track

    track.cursor_ms = voice.duration_ms
    track.entries.append(VoiceEntry(
        utterance_id=None,
        role=UtteranceRole.NARRATION.value,
        text=scene.dialogue,
        audio_url=voice.url,
        start_ms=0,
        end_ms=voice.duration_ms,
    ))
    return track
