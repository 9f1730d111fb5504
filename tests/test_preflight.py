import pytest

from vbuild.errors import BuildRejectedError
from vbuild.timeline import build_request, run_preflight, validate_assets


def _codes(issues):
    return [i.code for i in issues]


def _missing_clip_scene(make_scene, scene_id=2, idx=2):
    return make_scene(
        scene_id=scene_id,
        idx=idx,
        display_kind="video",
        active_clip={"url": "https://cdn.example.com/clips/2.mp4", "status": "failed"},
    )


def test_missing_clip_blocks_project(make_scene, make_manifest):
    manifest = make_manifest([make_scene(1, 1), _missing_clip_scene(make_scene)])

    assets = validate_assets(manifest)
    report = run_preflight(manifest).report

    assert assets.is_ready is False
    assert assets.ready_count == 1
    assert assets.total_count == 2
    assert [i.scene_id for i in assets.missing] == [2]
    assert not report.can_generate
    assert "missing_asset" in _codes(report.errors)


def test_relative_source_is_critical(make_scene, make_manifest):
    manifest = make_manifest([make_scene(5, 1, active_image={"url": "/images/5/a.png"})])

    report = run_preflight(manifest).report

    assert not report.can_generate
    issue = report.errors[0]
    assert issue.code == "relative_url"
    assert issue.field == "visual.source"
    assert "relative path" in issue.reason
    with pytest.raises(BuildRejectedError) as exc_info:
        build_request(manifest)
    assert exc_info.value.report.errors[0].scene_id == 5


def test_empty_cue_url_is_critical(make_scene, make_manifest):
    manifest = make_manifest([make_scene(cues=[{"id": 8, "start_ms": 0, "end_ms": 500}])])

    errors = run_preflight(manifest).report.errors

    assert errors[0].reason == "source URL is empty"
    assert errors[0].cue_id == 8


def test_relative_bgm_url_is_critical(make_scene, make_manifest):
    manifest = make_manifest([make_scene()], audio_tracks=[{"id": 1, "url": "bgm/theme.mp3"}])

    errors = run_preflight(manifest).report.errors

    assert errors[0].field == "bgm.url"
    assert errors[0].scene_id is None


def test_every_scene_is_checked(make_scene, make_manifest):
    manifest = make_manifest([
        make_scene(1, 1, active_image={"url": "/images/1.png"}),
        _missing_clip_scene(make_scene),
        make_scene(3, 3, active_image={"url": "images/3.png"}),
    ])

    report = run_preflight(manifest).report

    assert sorted(i.scene_id for i in report.errors) == [1, 2, 3]
    assert report.summary.invalid_scenes == 3
    assert report.summary.ready_scenes == 2


def test_no_visible_scenes(make_scene, make_manifest):
    manifest = make_manifest([make_scene(1, -1, is_hidden=True)])

    report = run_preflight(manifest).report

    assert _codes(report.errors) == ["no_scenes"]


def test_advisories_do_not_block(make_scene, make_utterance, make_manifest):
    manifest = make_manifest([
        make_scene(1, 1, dialogue="a line nobody voiced"),
        make_scene(2, 2, utterances=[
            make_utterance(1, 1, duration_ms=1000),
            make_utterance(2, 2, text="pending line", voiced=False),
            make_utterance(3, 3, text="   ", voiced=False),
        ]),
    ])

    report = run_preflight(manifest).report
    codes = _codes(report.warnings)

    assert report.can_generate
    assert report.errors == []
    assert "silent_dialogue" in codes
    assert "no_audio" in codes
    assert "audio_missing" in codes
    assert "text_empty" in codes
    assert report.summary.invalid_utterances == 1


def test_composition_warnings_are_reported(make_scene, make_manifest):
    manifest = make_manifest([
        make_scene(balloons=[{"id": 3, "utterance_id": 7, "display_policy": "voice_window"}]),
    ])

    report = run_preflight(manifest).report

    assert report.can_generate
    assert "dangling_reference" in _codes(report.warnings)


def test_asset_report_warnings(make_scene, make_manifest):
    manifest = make_manifest([
        make_scene(
            1, 1,
            display_kind="comic",
            active_comic={"url": "https://cdn.example.com/pages/1.png"},
            text_render_mode="engine",
        ),
        make_scene(
            2, 2,
            display_kind="comic",
            active_comic={"url": "https://cdn.example.com/pages/2.png"},
            balloons=[{"id": 1}],
        ),
    ])

    report = validate_assets(manifest)

    assert report.is_ready
    codes = _codes(report.warnings)
    assert "double_text" in codes
    assert "baked_asset_missing" in codes
    assert codes.count("no_voice") == 2
