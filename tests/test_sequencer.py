from concurrent.futures import ThreadPoolExecutor

import pytest
from sqlalchemy import event

from vbuild.errors import SceneNotFoundError
from vbuild.store import TEMP_IDX_BASE, SceneIndexSequencer, SceneRow, get_engine, get_session


def _seed(database_url, project_id, ids):
    session = get_session(database_url)
    try:
        for position, scene_id in enumerate(ids, start=1):
            session.add(SceneRow(id=scene_id, project_id=project_id, idx=position, title=f"scene {scene_id}"))
        session.commit()
    finally:
        session.close()


def _visible(sequencer, project_id):
    return [(s["id"], s["idx"]) for s in sequencer.list_scenes(project_id) if not s["is_hidden"]]


@pytest.fixture
def sequencer(database_url):
    return SceneIndexSequencer.from_url(database_url)


def test_hide_renumbers_remaining(sequencer, database_url):
    ids = list(range(38, 48))
    _seed(database_url, 1, ids)

    assert sequencer.hide(42) == -42

    scenes = {s["id"]: s for s in sequencer.list_scenes(1)}
    assert scenes[42]["idx"] == -42
    assert scenes[42]["is_hidden"] is True
    remaining = [i for i in ids if i != 42]
    assert _visible(sequencer, 1) == list(zip(remaining, range(1, 10)))
    assert sequencer.ordering_violations(1) == []


def test_renumber_uses_temporary_range(sequencer, database_url):
    _seed(database_url, 1, [1, 2, 3])
    seen = []

    def capture(conn, cursor, statement, parameters, context, executemany):
        if statement.startswith("UPDATE"):
            seen.append(parameters)

    engine = get_engine(database_url)
    event.listen(engine, "before_cursor_execute", capture)
    try:
        sequencer.reorder(1, [3, 2, 1])
    finally:
        event.remove(engine, "before_cursor_execute", capture)

    values = [p[0] for p in seen]
    assert values[:3] == [TEMP_IDX_BASE, TEMP_IDX_BASE + 1, TEMP_IDX_BASE + 2]
    assert values[3:] == [1, 2, 3]
    assert _visible(sequencer, 1) == [(3, 1), (2, 2), (1, 3)]


def test_hide_is_idempotent(sequencer, database_url):
    _seed(database_url, 1, [1, 2])

    sequencer.hide(1)

    assert sequencer.hide(1) == -1
    assert _visible(sequencer, 1) == [(2, 1)]


def test_restore_appends(sequencer, database_url):
    _seed(database_url, 1, [1, 2, 3])
    sequencer.hide(1)

    assert sequencer.restore(1) == 3
    assert _visible(sequencer, 1) == [(2, 1), (3, 2), (1, 3)]
    assert sequencer.ordering_violations(1) == []


def test_unknown_scene(sequencer):
    with pytest.raises(SceneNotFoundError):
        sequencer.hide(999)
    with pytest.raises(SceneNotFoundError):
        sequencer.restore(999)


def test_reorder_requires_every_visible_scene(sequencer, database_url):
    _seed(database_url, 1, [1, 2, 3])

    with pytest.raises(ValueError):
        sequencer.reorder(1, [1, 2])
    with pytest.raises(ValueError):
        sequencer.reorder(1, [1, 2, 3, 4])
    with pytest.raises(ValueError):
        sequencer.reorder(1, [1, 1, 2])
    assert _visible(sequencer, 1) == [(1, 1), (2, 2), (3, 3)]


def test_add_scene_appends_and_inserts(sequencer):
    first = sequencer.add_scene(1, title="a")
    second = sequencer.add_scene(1, title="b")
    inserted = sequencer.add_scene(1, title="c", insert_after_idx=1)
    leading = sequencer.add_scene(1, title="d", insert_after_idx=0)

    assert _visible(sequencer, 1) == [(leading, 1), (first, 2), (inserted, 3), (second, 4)]


def test_renumber_closes_gaps(sequencer, database_url):
    session = get_session(database_url)
    try:
        for scene_id, idx in [(1, 1), (2, 3), (3, 7)]:
            session.add(SceneRow(id=scene_id, project_id=1, idx=idx))
        session.commit()
    finally:
        session.close()

    assert sequencer.ordering_violations(1) != []
    assert sequencer.renumber(1) == 3
    assert _visible(sequencer, 1) == [(1, 1), (2, 2), (3, 3)]
    assert sequencer.ordering_violations(1) == []


def test_projects_are_independent(sequencer, database_url):
    _seed(database_url, 1, [1, 2])
    _seed(database_url, 2, [3, 4])

    sequencer.hide(1)

    assert _visible(sequencer, 1) == [(2, 1)]
    assert _visible(sequencer, 2) == [(3, 1), (4, 2)]


def test_concurrent_hides_keep_invariant(sequencer, database_url):
    _seed(database_url, 1, list(range(1, 13)))

    with ThreadPoolExecutor(max_workers=4) as pool:
        list(pool.map(sequencer.hide, [2, 5, 8, 11]))

    assert [idx for _, idx in _visible(sequencer, 1)] == list(range(1, 9))
    assert sequencer.ordering_violations(1) == []
