"""Two-layer preflight gate run before a build is submitted.

Layer 1 (critical) decides whether rendering may start: every scene needs
its backing asset and every emitted source must be an absolute URL.
Layer 2 (advisory) never blocks. Both layers visit every scene and
collect every issue; nothing exits early.
"""

import logging
from dataclasses import dataclass
from typing import List

from pydantic import BaseModel, Field

from ..errors import Issue, MissingAssetError, RelativeUrlError, Severity
from ..models.manifest import Manifest, is_absolute_url
from ..models.scene import DisplayKind, Scene, TextRenderMode
from .compositor import Composition, compose_timeline
from .visual import select_visual

logger = logging.getLogger(__name__)


class AssetReport(BaseModel):
    """Whether every visible scene has its backing asset."""

    is_ready: bool
    ready_count: int
    total_count: int
    missing: List[Issue] = Field(default_factory=list)
    warnings: List[Issue] = Field(default_factory=list)


class PreflightSummary(BaseModel):
    total_scenes: int = 0
    ready_scenes: int = 0
    invalid_scenes: int = 0
    invalid_utterances: int = 0


class PreflightReport(BaseModel):
    """Render verdict with the complete critical and advisory lists."""

    can_generate: bool
    errors: List[Issue] = Field(default_factory=list)
    warnings: List[Issue] = Field(default_factory=list)
    summary: PreflightSummary = Field(default_factory=PreflightSummary)

    @property
    def is_valid(self) -> bool:
        return self.can_generate


@dataclass
class Preflight:
    report: PreflightReport
    composition: Composition


def _advisory(scene: Scene, field: str, code: str, reason: str, **refs: int) -> Issue:
    return Issue(
        scene_id=scene.id,
        scene_idx=scene.idx,
        field=field,
        reason=reason,
        code=code,
        severity=Severity.ADVISORY,
        **refs,
    )


def _has_scene_audio(scene: Scene) -> bool:
    if any(u.has_audio for u in scene.utterances):
        return True
    return scene.active_voice is not None and bool(scene.active_voice.url)


def validate_assets(manifest: Manifest) -> AssetReport:
    """Check every visible scene's backing asset before composing.

    Args:
        manifest: Project snapshot.

    Returns:
        AssetReport; scenes failing visual selection are listed in `missing`.
    """
    missing: List[Issue] = []
    warnings: List[Issue] = []
    scenes = manifest.visible_scenes()
    ready = 0

    for scene in scenes:
        try:
            select_visual(scene, manifest.settings)
            ready += 1
        except MissingAssetError as e:
            missing.append(e.to_issue())

        mode = scene.render_mode
        if scene.display_kind == DisplayKind.COMIC and mode == TextRenderMode.ENGINE:
            warnings.append(_advisory(
                scene, "text_render_mode", "double_text",
                "composited page with engine-drawn text, balloon text may appear twice",
            ))

        if mode == TextRenderMode.BAKED and scene.balloons:
            unbaked = [b for b in scene.balloons if not b.baked_image_url]
            if unbaked:
                warnings.append(_advisory(
                    scene, "balloons.baked_image_url", "baked_asset_missing",
                    f"{len(unbaked)}/{len(scene.balloons)} balloon image(s) missing in baked mode, "
                    "they will not be shown",
                ))

        if not _has_scene_audio(scene):
            warnings.append(_advisory(scene, "voices", "no_voice", "no generated voice for this scene"))

    return AssetReport(
        is_ready=not missing and len(scenes) > 0,
        ready_count=ready,
        total_count=len(scenes),
        missing=missing,
        warnings=warnings,
    )


def _url_issue(url: str, scene_id, scene_idx, field: str, **refs: int):
    if is_absolute_url(url):
        return None
    if not url or not url.strip():
        reason = "source URL is empty"
    else:
        reason = f"relative path ({url[:50]}), an absolute URL is required"
    return RelativeUrlError(reason, scene_id=scene_id, scene_idx=scene_idx, field=field, **refs).to_issue()


def check_urls(composition: Composition) -> List[Issue]:
    """Layer 1: every emitted source must be a non-empty absolute URL."""
    issues: List[Issue] = []

    def check(url, scene_id, scene_idx, field, **refs):
        issue = _url_issue(url, scene_id, scene_idx, field, **refs)
        if issue is not None:
            issues.append(issue)

    for s in composition.scenes:
        check(s.visual.source, s.scene_id, s.order, "visual.source")
        for i, voice in enumerate(s.voices):
            check(voice.audio_url, s.scene_id, s.order, f"voices[{i}].audio_url",
                  utterance_id=voice.utterance_id)
        for i, balloon in enumerate(s.balloons):
            if balloon.baked_image_url is not None:
                check(balloon.baked_image_url, s.scene_id, s.order,
                      f"balloons[{i}].baked_image_url", balloon_id=balloon.balloon_id)
        for i, cue in enumerate(s.sfx):
            check(cue.url, s.scene_id, s.order, f"sfx[{i}].url", cue_id=cue.cue_id)

    if composition.bgm is not None:
        check(composition.bgm.url, None, None, "bgm.url")

    return issues


def advisory_checks(manifest: Manifest, composition: Composition) -> List[Issue]:
    """Layer 2: findings that never block rendering."""
    issues: List[Issue] = []
    composed = {s.scene_id: s for s in composition.scenes}

    for scene in manifest.visible_scenes():
        timeline = composed.get(scene.id)
        if timeline is None:
            continue

        has_text = bool(scene.dialogue.strip()) or any(u.text.strip() for u in scene.utterances)
        if has_text and not timeline.voices:
            issues.append(_advisory(
                scene, "voices", "silent_dialogue",
                f"scene {scene.idx} has dialogue but no voice, it will play silent",
            ))

        if not timeline.voices and not timeline.sfx and composition.bgm is None:
            issues.append(_advisory(scene, "audio", "no_audio", f"scene {scene.idx} has no audio at all"))

        for utterance in scene.ordered_utterances():
            if not utterance.text.strip():
                issues.append(_advisory(
                    scene, "utterances.text", "text_empty",
                    f"scene {scene.idx} has an empty utterance", utterance_id=utterance.id,
                ))
            elif not utterance.has_audio:
                preview = utterance.text if len(utterance.text) <= 20 else utterance.text[:20] + "…"
                issues.append(_advisory(
                    scene, "utterances.audio_url", "audio_missing",
                    f"scene {scene.idx}: no audio for \"{preview}\", rendered silent",
                    utterance_id=utterance.id,
                ))

    return issues


def run_preflight(manifest: Manifest) -> Preflight:
    """Compose the project and run both validation layers.

    Args:
        manifest: Project snapshot.

    Returns:
        Preflight holding the report and the composition it was computed from.
    """
    composition = compose_timeline(manifest)
    errors = list(composition.critical) + check_urls(composition)
    warnings = list(composition.advisory) + advisory_checks(manifest, composition)

    total = len(manifest.visible_scenes())
    if total == 0:
        errors.append(Issue(
            field="scenes",
            reason="project has no visible scenes",
            code="no_scenes",
            severity=Severity.CRITICAL,
        ))

    summary = PreflightSummary(
        total_scenes=total,
        ready_scenes=len(composition.scenes),
        invalid_scenes=len({e.scene_id for e in errors if e.scene_id is not None}),
        invalid_utterances=sum(1 for w in warnings if w.code == "audio_missing"),
    )
    report = PreflightReport(
        can_generate=not errors,
        errors=errors,
        warnings=warnings,
        summary=summary,
    )

    if errors:
        logger.warning(f"Preflight failed: {len(errors)} critical error(s)")
    else:
        logger.info(f"Preflight passed with {len(warnings)} warning(s)")
    return Preflight(report=report, composition=composition)
