"""Background track and sound-effect layering."""

import logging
from typing import List, Optional, Tuple

from ..errors import InvalidIntervalError, Issue
from ..models.audio import AudioTrack, DuckingProfile
from ..models.build import BgmBlock, Ducking, Fades, SfxEntry
from ..models.scene import AudioCue, Scene

logger = logging.getLogger(__name__)


def compose_bgm(
    track: Optional[AudioTrack],
    default_volume: float = 0.25,
    default_ducking: bool = False,
) -> Tuple[Optional[BgmBlock], List[Issue]]:
    """Build the project-wide background block.

    Ducking parameters pass through unchanged; the renderer applies the
    envelope. A track that sets no ducking profile is ducked with the
    default profile when default_ducking is on.

    Args:
        track: The project's active background track, or None.
        default_volume: Volume used when the track sets none.
        default_ducking: Whether tracks without a ducking profile are ducked.

    Returns:
        Tuple of the background block (None without a track) and advisory issues.
    """
    issues: List[Issue] = []
    if track is None:
        return None, issues

    video_end_ms = track.video_end_ms
    if video_end_ms is not None and video_end_ms <= track.video_start_ms:
        logger.warning(
            f"Audio track {track.id}: window end {video_end_ms}ms <= start "
            f"{track.video_start_ms}ms, playing to the end instead"
        )
        issues.append(InvalidIntervalError(
            f"background window end ({video_end_ms}ms) is not after start "
            f"({track.video_start_ms}ms), end ignored",
            field="bgm.video_end_ms",
        ).to_issue())
        video_end_ms = None

    profile = track.ducking
    if profile is None and default_ducking:
        profile = DuckingProfile(enabled=True)

    ducking = None
    if profile is not None and profile.enabled:
        ducking = Ducking(
            volume=profile.volume,
            attack_ms=profile.attack_ms,
            release_ms=profile.release_ms,
        )

    block = BgmBlock(
        track_id=track.id,
        url=track.url or "",
        volume=track.volume if track.volume is not None else default_volume,
        loop=track.loop,
        fades=Fades(in_ms=track.fade_in_ms, out_ms=track.fade_out_ms),
        ducking=ducking,
        video_start_ms=track.video_start_ms,
        video_end_ms=video_end_ms,
        audio_offset_ms=track.audio_offset_ms,
    )
    return block, issues


def cue_end_ms(cue: AudioCue, scene_duration_ms: int) -> Optional[int]:
    """Resolve where a cue stops; None lets the source play out."""
    if cue.end_ms is not None:
        return cue.end_ms
    if cue.loop:
        return scene_duration_ms
    if cue.duration_ms:
        return cue.start_ms + cue.duration_ms
    return None


def compose_cues(scene: Scene, scene_duration_ms: int) -> Tuple[List[SfxEntry], List[Issue]]:
    """Place a scene's active sound-effect cues.

    Args:
        scene: Scene owning the cues.
        scene_duration_ms: Resolved scene duration.

    Returns:
        Tuple of cue entries ordered by start time and advisory issues.
    """
    entries: List[SfxEntry] = []
    issues: List[Issue] = []

    for cue in sorted(scene.cues, key=lambda c: (c.start_ms, c.id)):
        if not cue.is_active:
            continue

        end_ms = cue_end_ms(cue, scene_duration_ms)
        if end_ms is not None and end_ms <= cue.start_ms:
            logger.warning(f"Scene {scene.id}: cue {cue.id} has invalid timing, skipping")
            issues.append(InvalidIntervalError(
                f"invalid timing (start={cue.start_ms}ms, end={end_ms}ms), dropped",
                scene_id=scene.id,
                scene_idx=scene.idx,
                field="sfx.end_ms",
                cue_id=cue.id,
            ).to_issue())
            continue

        entries.append(SfxEntry(
            cue_id=cue.id,
            name=cue.name,
            url=cue.url or "",
            start_ms=cue.start_ms,
            end_ms=end_ms,
            duration_ms=cue.duration_ms,
            volume=cue.volume,
            loop=cue.loop,
            fades=Fades(in_ms=cue.fade_in_ms, out_ms=cue.fade_out_ms),
        ))

    return entries, issues
