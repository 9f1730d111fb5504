"""Visual asset selection for scenes."""

from ..errors import MissingAssetError
from ..models.build import Effect, MotionBlock, Visual
from ..models.project import BuildSettings
from ..models.scene import DisplayKind, Scene

NO_MOTION = Effect(type="none", zoom=1.0, pan="center")

# Field each display kind requires, as reported to the UI
REQUIRED_ASSET = {
    DisplayKind.IMAGE: "active_image.url",
    DisplayKind.COMIC: "active_comic.url",
    DisplayKind.VIDEO: "active_clip.url",
}


def select_visual(scene: Scene, settings: BuildSettings) -> Visual:
    """Pick the asset that backs a scene.

    Composited pages and video clips never get Ken Burns motion; plain
    images do when the settings enable it.

    Args:
        scene: Scene to select for.
        settings: Build settings carrying the Ken Burns configuration.

    Returns:
        Visual descriptor with kind, source URL and effect.

    Raises:
        MissingAssetError: If the asset required by the display kind is absent.
    """
    kind = scene.display_kind
    field = REQUIRED_ASSET[kind]

    if kind == DisplayKind.COMIC:
        if scene.active_comic is None or not scene.active_comic.url:
            raise MissingAssetError(
                f"Scene {scene.id}: no composited page (display_kind=comic)",
                scene_id=scene.id, scene_idx=scene.idx, field=field,
            )
        return Visual(kind=kind.value, source=scene.active_comic.url, effect=NO_MOTION)

    if kind == DisplayKind.VIDEO:
        clip = scene.active_clip
        if clip is None or not clip.is_completed or not clip.url:
            raise MissingAssetError(
                f"Scene {scene.id}: no completed video clip (display_kind=video)",
                scene_id=scene.id, scene_idx=scene.idx, field=field,
            )
        return Visual(kind=kind.value, source=clip.url, effect=NO_MOTION)

    if scene.active_image is None or not scene.active_image.url:
        raise MissingAssetError(
            f"Scene {scene.id}: no image (display_kind=image)",
            scene_id=scene.id, scene_idx=scene.idx, field=field,
        )

    effect = NO_MOTION
    if settings.ken_burns:
        effect = Effect(type="kenburns", zoom=settings.ken_burns_zoom, pan=settings.ken_burns_pan)
    return Visual(kind=kind.value, source=scene.active_image.url, effect=effect)


def resolve_motion(scene: Scene, visual: Visual) -> MotionBlock:
    """Return the motion block for a scene whose visual is already selected."""
    if visual.kind != DisplayKind.IMAGE.value:
        return MotionBlock()

    if scene.motion is not None:
        return MotionBlock(
            preset_id=scene.motion.preset_id,
            motion_type=scene.motion.motion_type,
            params=scene.motion.params,
        )

    if visual.effect.type == "kenburns":
        return MotionBlock(
            preset_id="kenburns_soft",
            motion_type="zoom",
            params={"start_scale": 1.0, "end_scale": visual.effect.zoom},
        )

    return MotionBlock()
