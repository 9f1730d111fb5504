"""Timeline composition: join every stage into per-scene timeline entries."""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from ..errors import Issue, MissingAssetError
from ..models.build import BgmBlock, SceneTimeline, Summary
from ..models.manifest import Manifest
from ..models.project import BuildSettings
from ..models.scene import DisplayKind, Scene
from .audio import compose_bgm, compose_cues
from .duration import DurationResult, resolve_timeline_duration
from .overlays import sync_balloons, sync_telops
from .visual import resolve_motion, select_visual
from .voice import build_voice_track

logger = logging.getLogger(__name__)


@dataclass
class Composition:
    """Result of composing a whole project.

    Scenes whose visual could not be selected are absent from `scenes` and
    reported in `critical`; overlay and cue irregularities are in `advisory`.
    """

    scenes: List[SceneTimeline] = field(default_factory=list)
    bgm: Optional[BgmBlock] = None
    critical: List[Issue] = field(default_factory=list)
    advisory: List[Issue] = field(default_factory=list)
    durations: List[Tuple[Scene, DurationResult]] = field(default_factory=list)

    @property
    def total_duration_ms(self) -> int:
        return sum(s.duration_ms for s in self.scenes)

    def summary(self) -> Summary:
        scenes_with_voice = sum(1 for s in self.scenes if s.voices)
        has_sfx = any(s.sfx for s in self.scenes)
        return Summary(
            total_scenes=len(self.scenes),
            total_duration_ms=self.total_duration_ms,
            has_audio=scenes_with_voice > 0 or has_sfx or self.bgm is not None,
            scenes_with_voice=scenes_with_voice,
            has_bgm=self.bgm is not None,
            has_video_clips=any(s.visual.kind == DisplayKind.VIDEO.value for s in self.scenes),
        )


def compose_scene(
    scene: Scene,
    settings: BuildSettings,
    start_ms: int,
) -> Tuple[SceneTimeline, DurationResult, List[Issue]]:
    """Compose one scene starting at start_ms on the project timeline.

    Args:
        scene: Visible scene to compose.
        settings: Build settings.
        start_ms: Absolute start of the scene.

    Returns:
        Tuple of the scene timeline entry, its duration result and the
        advisory issues collected while composing it.

    Raises:
        MissingAssetError: If the scene has no usable backing asset.
    """
    visual = select_visual(scene, settings)
    track = build_voice_track(scene)
    duration = resolve_timeline_duration(scene, track)
    issues: List[Issue] = []

    balloons, balloon_issues = sync_balloons(
        scene, track, duration.duration_ms, settings.balloon_policy_default
    )
    issues.extend(balloon_issues)

    telops = []
    if settings.telops_enabled:
        telops, telop_issues = sync_telops(scene, track, duration.duration_ms)
        issues.extend(telop_issues)

    sfx, cue_issues = compose_cues(scene, duration.duration_ms)
    issues.extend(cue_issues)

    timeline = SceneTimeline(
        scene_id=scene.id,
        order=scene.idx,
        title=scene.title,
        start_ms=start_ms,
        duration_ms=duration.duration_ms,
        duration_reason=duration.reason.value,
        text_render_mode=scene.render_mode.value,
        visual=visual,
        motion=resolve_motion(scene, visual),
        voices=track.entries,
        balloons=balloons,
        telops=telops,
        sfx=sfx,
    )
    return timeline, duration, issues


def compose_timeline(manifest: Manifest) -> Composition:
    """Compose every visible scene in order, collecting all issues.

    Scene starts are cumulative, so scenes never overlap. A scene with a
    missing asset is reported and skipped; the remaining scenes are still
    composed so the report is complete.
    """
    composition = Composition()
    cursor_ms = 0

    for scene in manifest.visible_scenes():
        try:
            timeline, duration, issues = compose_scene(scene, manifest.settings, cursor_ms)
        except MissingAssetError as e:
            logger.warning(f"Scene {scene.id}: {e.message}")
            composition.critical.append(e.to_issue())
            continue

        composition.scenes.append(timeline)
        composition.durations.append((scene, duration))
        composition.advisory.extend(issues)
        cursor_ms += duration.duration_ms

    settings = manifest.settings
    composition.bgm, bgm_issues = compose_bgm(
        manifest.active_track(), settings.bgm_volume_default, settings.ducking_enabled
    )
    composition.advisory.extend(bgm_issues)

    logger.info(
        f"Composed {len(composition.scenes)} scene(s), "
        f"{composition.total_duration_ms}ms total, "
        f"{len(composition.critical)} critical / {len(composition.advisory)} advisory"
    )
    return composition
