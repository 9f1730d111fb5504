from vbuild.models import DisplayPolicy
from vbuild.timeline import build_voice_track, resolve_duration, sync_balloons, sync_telops


def _compose(scene):
    track = build_voice_track(scene)
    duration = resolve_duration(scene, track).duration_ms
    return track, duration


def test_dangling_voice_window_degrades_to_always_on(make_scene, make_utterance):
    scene = make_scene(
        utterances=[
            make_utterance(1, 1, duration_ms=1200),
            make_utterance(7, 2, text="hi", voiced=False),
        ],
        balloons=[{"id": 3, "utterance_id": 7, "display_policy": "voice_window"}],
    )
    track, duration = _compose(scene)

    entries, issues = sync_balloons(scene, track, duration)

    assert duration == 3700
    assert len(entries) == 1
    assert (entries[0].start_ms, entries[0].end_ms) == (0, duration)
    assert entries[0].text == "hi"
    assert len(issues) == 1
    issue = issues[0]
    assert issue.code == "dangling_reference"
    assert issue.balloon_id == 3
    assert issue.utterance_id == 7
    assert not issue.is_critical


def test_voice_window_follows_linked_entry(make_scene, make_utterance):
    scene = make_scene(
        utterances=[
            make_utterance(1, 1, duration_ms=1200, text="first"),
            make_utterance(2, 2, duration_ms=800, text="second"),
        ],
        balloons=[{"id": 1, "utterance_id": 2, "display_policy": "voice_window"}],
    )
    track, duration = _compose(scene)

    entries, issues = sync_balloons(scene, track, duration)

    assert (entries[0].start_ms, entries[0].end_ms) == (1200, 2000)
    assert entries[0].text == "second"
    assert issues == []


def test_always_on_spans_scene(make_scene):
    scene = make_scene(balloons=[{"id": 1, "display_policy": "always_on"}])
    track, duration = _compose(scene)

    entries, _ = sync_balloons(scene, track, duration)

    assert (entries[0].start_ms, entries[0].end_ms) == (0, 5000)


def test_manual_window(make_scene):
    scene = make_scene(balloons=[
        {"id": 1, "display_policy": "manual_window", "timing": {"start_ms": 500, "end_ms": 1500}},
        {"id": 2, "display_policy": "manual_window", "timing": {"start_ms": 1000}},
    ])
    track, duration = _compose(scene)

    entries, issues = sync_balloons(scene, track, duration)

    assert [(e.start_ms, e.end_ms) for e in entries] == [(500, 1500), (1000, 5000)]
    assert issues == []


def test_inverted_manual_window_is_dropped(make_scene):
    scene = make_scene(balloons=[
        {"id": 4, "display_policy": "manual_window", "timing": {"start_ms": 2000, "end_ms": 1000}},
    ])
    track, duration = _compose(scene)

    entries, issues = sync_balloons(scene, track, duration)

    assert entries == []
    assert issues[0].code == "invalid_interval"
    assert issues[0].balloon_id == 4


def test_unset_policy_uses_default(make_scene):
    scene = make_scene(balloons=[{"id": 1}])
    track, duration = _compose(scene)

    entries, issues = sync_balloons(scene, track, duration, default_policy=DisplayPolicy.ALWAYS_ON)

    assert entries[0].display_policy == DisplayPolicy.ALWAYS_ON
    assert issues == []


def test_text_mode_none_emits_nothing(make_scene):
    scene = make_scene(text_render_mode="none", balloons=[{"id": 1, "display_policy": "always_on"}])
    track, duration = _compose(scene)

    assert sync_balloons(scene, track, duration) == ([], [])


def test_baked_mode_requires_image(make_scene):
    scene = make_scene(
        text_render_mode="baked",
        balloons=[
            {"id": 1, "display_policy": "always_on"},
            {
                "id": 2,
                "display_policy": "always_on",
                "baked_image_url": "https://cdn.example.com/balloons/2.png",
                "baked_width_px": 320,
                "baked_height_px": 180,
            },
        ],
    )
    track, duration = _compose(scene)

    entries, issues = sync_balloons(scene, track, duration)

    assert [e.balloon_id for e in entries] == [2]
    assert entries[0].baked_image_size.width == 320
    assert issues[0].code == "baked_asset_missing"
    assert issues[0].balloon_id == 1


def test_telop_borrows_utterance_text(make_scene, make_utterance):
    scene = make_scene(
        utterances=[make_utterance(1, 1, duration_ms=1500, text="spoken line")],
        telops=[
            {"id": 1, "utterance_id": 1},
            {"id": 2, "text": "own caption", "display_policy": "always_on"},
            {"id": 3, "display_policy": "always_on"},
        ],
    )
    track, duration = _compose(scene)

    entries, issues = sync_telops(scene, track, duration)

    assert [(e.telop_id, e.text) for e in entries] == [(1, "spoken line"), (2, "own caption")]
    assert (entries[0].start_ms, entries[0].end_ms) == (0, 1500)
    assert issues == []


def test_dangling_telop_warns(make_scene):
    scene = make_scene(telops=[{"id": 5, "utterance_id": 99, "text": "caption"}])
    track, duration = _compose(scene)

    entries, issues = sync_telops(scene, track, duration)

    assert (entries[0].start_ms, entries[0].end_ms) == (0, duration)
    assert issues[0].telop_id == 5
    assert issues[0].utterance_id == 99
