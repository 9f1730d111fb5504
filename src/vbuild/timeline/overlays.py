"""Balloon and telop timing synchronization."""

import logging
from typing import List, Optional, Tuple

from ..errors import (
    BakedAssetMissingError,
    DanglingReferenceError,
    InvalidIntervalError,
    Issue,
)
from ..models.build import BakedImageSize, BalloonEntry, TelopEntry
from ..models.scene import Balloon, DisplayPolicy, Scene, Telop, TextRenderMode, Timing
from .voice import VoiceTrack

logger = logging.getLogger(__name__)


def resolve_window(
    policy: DisplayPolicy,
    timing: Optional[Timing],
    utterance_id: Optional[int],
    track: VoiceTrack,
    scene_duration_ms: int,
) -> Tuple[int, int, bool]:
    """Compute an overlay's scene-relative display window.

    Args:
        policy: Display policy of the overlay.
        timing: Explicit window for manual_window overlays.
        utterance_id: Linked utterance, if any.
        track: Voice track of the scene.
        scene_duration_ms: Resolved scene duration.

    Returns:
        Tuple of (start_ms, end_ms, degraded). degraded is True when a
        voice_window overlay fell back to the whole scene because its
        utterance produced no voice entry.
    """
    if policy == DisplayPolicy.ALWAYS_ON:
        return 0, scene_duration_ms, False

    if policy == DisplayPolicy.MANUAL_WINDOW:
        start_ms = timing.start_ms if timing and timing.start_ms is not None else 0
        end_ms = timing.end_ms if timing and timing.end_ms is not None else scene_duration_ms
        return start_ms, end_ms, False

    window = track.window_for(utterance_id)
    if window is None:
        return 0, scene_duration_ms, True
    return window.start_ms, window.end_ms, False


def _dangling(scene: Scene, utterance_id: Optional[int], **refs: int) -> Issue:
    if utterance_id is None:
        message = "voice_window without a linked utterance, shown for the whole scene"
    else:
        message = f"utterance {utterance_id} has no voice entry, shown for the whole scene"
    return DanglingReferenceError(
        message,
        scene_id=scene.id,
        scene_idx=scene.idx,
        field="utterance_id",
        utterance_id=utterance_id,
        **refs,
    ).to_issue()


def _invalid(scene: Scene, start_ms: int, end_ms: int, field: str, **refs: int) -> Issue:
    return InvalidIntervalError(
        f"invalid timing (start={start_ms}ms, end={end_ms}ms), dropped",
        scene_id=scene.id,
        scene_idx=scene.idx,
        field=field,
        **refs,
    ).to_issue()


def sync_balloons(
    scene: Scene,
    track: VoiceTrack,
    scene_duration_ms: int,
    default_policy: DisplayPolicy = DisplayPolicy.VOICE_WINDOW,
) -> Tuple[List[BalloonEntry], List[Issue]]:
    """Place a scene's balloons on its timeline.

    Dangling voice_window links degrade to always_on with a warning. Invalid
    windows, and baked-mode balloons without an image, are dropped with a
    warning.

    Args:
        scene: Scene owning the balloons.
        track: Voice track built for the scene.
        scene_duration_ms: Resolved scene duration.
        default_policy: Policy for balloons that do not declare one.

    Returns:
        Tuple of emitted balloon entries and advisory issues.
    """
    mode = scene.render_mode
    entries: List[BalloonEntry] = []
    issues: List[Issue] = []

    if mode == TextRenderMode.NONE:
        return entries, issues

    for balloon in sorted(scene.balloons, key=lambda b: (b.z_index, b.id)):
        policy = balloon.display_policy or default_policy
        start_ms, end_ms, degraded = resolve_window(
            policy, balloon.timing, balloon.utterance_id, track, scene_duration_ms
        )
        if degraded:
            logger.warning(
                f"Scene {scene.id}: balloon {balloon.id} -> utterance "
                f"{balloon.utterance_id} not voiced, falling back to always_on"
            )
            issues.append(_dangling(scene, balloon.utterance_id, balloon_id=balloon.id))

        if end_ms <= start_ms:
            logger.warning(f"Scene {scene.id}: balloon {balloon.id} has invalid timing, skipping")
            issues.append(_invalid(scene, start_ms, end_ms, "balloons.timing", balloon_id=balloon.id))
            continue

        if mode == TextRenderMode.BAKED and not balloon.baked_image_url:
            logger.warning(f"Scene {scene.id}: balloon {balloon.id} has no baked image, skipping")
            issues.append(BakedAssetMissingError(
                "baked text mode but no balloon image, not shown",
                scene_id=scene.id,
                scene_idx=scene.idx,
                field="balloons.baked_image_url",
                balloon_id=balloon.id,
            ).to_issue())
            continue

        entries.append(_balloon_entry(balloon, policy, track, start_ms, end_ms))

    return entries, issues


def _balloon_entry(
    balloon: Balloon,
    policy: DisplayPolicy,
    track: VoiceTrack,
    start_ms: int,
    end_ms: int,
) -> BalloonEntry:
    size = None
    if balloon.baked_width_px and balloon.baked_height_px:
        size = BakedImageSize(width=balloon.baked_width_px, height=balloon.baked_height_px)

    return BalloonEntry(
        balloon_id=balloon.id,
        utterance_id=balloon.utterance_id,
        text=track.text_for(balloon.utterance_id),
        start_ms=start_ms,
        end_ms=end_ms,
        display_policy=policy,
        position=balloon.position,
        size=balloon.size,
        tail=balloon.tail,
        shape=balloon.shape,
        style=balloon.style,
        z_index=balloon.z_index,
        baked_image_url=balloon.baked_image_url,
        baked_image_size=size,
    )


def sync_telops(
    scene: Scene,
    track: VoiceTrack,
    scene_duration_ms: int,
) -> Tuple[List[TelopEntry], List[Issue]]:
    """Place a scene's telops on its timeline, using the balloon window rules."""
    entries: List[TelopEntry] = []
    issues: List[Issue] = []

    for telop in sorted(scene.telops, key=lambda t: t.id):
        start_ms, end_ms, degraded = resolve_window(
            telop.display_policy, telop.timing, telop.utterance_id, track, scene_duration_ms
        )
        if degraded:
            issues.append(_dangling(scene, telop.utterance_id, telop_id=telop.id))

        if end_ms <= start_ms:
            issues.append(_invalid(scene, start_ms, end_ms, "telops.timing", telop_id=telop.id))
            continue

        text = telop.text or track.text_for(telop.utterance_id)
        if not text:
            logger.debug(f"Scene {scene.id}: telop {telop.id} has no text, skipping")
            continue

        entries.append(_telop_entry(telop, text, start_ms, end_ms))

    return entries, issues


def _telop_entry(telop: Telop, text: str, start_ms: int, end_ms: int) -> TelopEntry:
    return TelopEntry(
        telop_id=telop.id,
        utterance_id=telop.utterance_id,
        text=text,
        start_ms=start_ms,
        end_ms=end_ms,
        display_policy=telop.display_policy,
        position=telop.position,
        width=telop.width,
        style=telop.style,
        text_align=telop.text_align,
    )
