import pytest

from vbuild.errors import MissingAssetError
from vbuild.models import BuildSettings
from vbuild.timeline import resolve_motion, select_visual


def test_image_gets_ken_burns(make_scene, settings):
    visual = select_visual(make_scene(), settings)

    assert visual.kind == "image"
    assert visual.source == "https://cdn.example.com/images/1.png"
    assert visual.effect.type == "kenburns"
    assert visual.effect.zoom == 1.05


def test_image_motion_defaults_to_soft_zoom(make_scene, settings):
    scene = make_scene()
    motion = resolve_motion(scene, select_visual(scene, settings))

    assert motion.preset_id == "kenburns_soft"
    assert motion.params == {"start_scale": 1.0, "end_scale": 1.05}


def test_ken_burns_disabled(make_scene):
    settings = BuildSettings(ken_burns=False)
    scene = make_scene()
    visual = select_visual(scene, settings)

    assert visual.effect.type == "none"
    assert resolve_motion(scene, visual).preset_id == "none"


def test_scene_motion_descriptor_wins_for_images(make_scene, settings):
    scene = make_scene(motion={"preset_id": "pan_left", "motion_type": "pan", "params": {"distance": 0.1}})

    motion = resolve_motion(scene, select_visual(scene, settings))

    assert motion.preset_id == "pan_left"
    assert motion.motion_type == "pan"


def test_comic_page_has_no_motion(make_scene, settings):
    scene = make_scene(
        display_kind="comic",
        active_comic={"url": "https://cdn.example.com/pages/1.png"},
        motion={"preset_id": "pan_left"},
    )

    visual = select_visual(scene, settings)

    assert visual.kind == "comic"
    assert visual.effect.type == "none"
    assert resolve_motion(scene, visual).preset_id == "none"


def test_completed_clip(make_scene, settings):
    scene = make_scene(
        display_kind="video",
        active_clip={"url": "https://cdn.example.com/clips/1.mp4", "status": "completed", "duration_sec": 5},
    )

    visual = select_visual(scene, settings)

    assert visual.kind == "video"
    assert visual.source == "https://cdn.example.com/clips/1.mp4"
    assert visual.effect.type == "none"


def test_video_without_completed_clip_is_missing(make_scene, settings):
    scene = make_scene(
        scene_id=9,
        idx=3,
        display_kind="video",
        active_clip={"url": "https://cdn.example.com/clips/9.mp4", "status": "processing"},
    )

    with pytest.raises(MissingAssetError) as exc_info:
        select_visual(scene, settings)

    issue = exc_info.value.to_issue()
    assert issue.scene_id == 9
    assert issue.scene_idx == 3
    assert issue.field == "active_clip.url"
    assert issue.is_critical


def test_image_without_asset_is_missing(make_scene, settings):
    with pytest.raises(MissingAssetError):
        select_visual(make_scene(active_image=None), settings)


def test_comic_without_page_is_missing(make_scene, settings):
    with pytest.raises(MissingAssetError):
        select_visual(make_scene(display_kind="comic"), settings)
