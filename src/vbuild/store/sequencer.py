"""Scene index sequencing.

Visible scenes hold indices 1..N with no gaps; hidden scenes hold -id, which
is unique because ids are. (project_id, idx) is unique in the store, so
every renumbering runs in two phases: all affected rows first move to
TEMP_IDX_BASE + position, then to their final value. A single pass can
collide with a row that has not been updated yet.

Operations on one project are serialized by a per-project lock; the
temporary values of one operation must never meet the final values of
another.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, sessionmaker

from ..errors import SceneNotFoundError
from .db import SceneRow, get_session_factory

logger = logging.getLogger(__name__)

TEMP_IDX_BASE = 10000


class SceneIndexSequencer:
    """Maintains the scene ordering invariant under hide, restore and reorder."""

    def __init__(self, session_factory: sessionmaker) -> None:
        """Initialize the sequencer.

        Args:
            session_factory: Factory producing sessions on the scene store.
        """
        self._session_factory = session_factory
        self._locks: Dict[int, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    @classmethod
    def from_url(cls, database_url: str) -> "SceneIndexSequencer":
        """Create a sequencer on the store at database_url."""
        return cls(get_session_factory(database_url))

    @contextmanager
    def _project_lock(self, project_id: int) -> Iterator[None]:
        with self._locks_guard:
            lock = self._locks.setdefault(project_id, threading.Lock())
        with lock:
            yield

    @contextmanager
    def _transaction(self) -> Iterator[Session]:
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def _project_of(self, scene_id: int) -> int:
        with self._transaction() as session:
            row = session.get(SceneRow, scene_id)
            if row is None:
                raise SceneNotFoundError(scene_id)
            return row.project_id

    @staticmethod
    def _visible_ids(session: Session, project_id: int) -> List[int]:
        rows = (
            session.query(SceneRow.id)
            .filter(SceneRow.project_id == project_id, SceneRow.is_hidden.is_(False))
            .order_by(SceneRow.idx)
            .all()
        )
        return [r.id for r in rows]

    @staticmethod
    def _max_visible_idx(session: Session, project_id: int) -> int:
        value = (
            session.query(func.max(SceneRow.idx))
            .filter(SceneRow.project_id == project_id, SceneRow.is_hidden.is_(False))
            .scalar()
        )
        return value or 0

    @staticmethod
    def _assign(session: Session, scene_ids: List[int]) -> None:
        """Give scene_ids the indices 1..N in list order, in two phases."""
        if len(scene_ids) >= TEMP_IDX_BASE:
            raise ValueError(f"Cannot sequence {len(scene_ids)} scenes (limit {TEMP_IDX_BASE - 1})")

        # Phase 1: park every row outside the live range.
        for position, scene_id in enumerate(scene_ids):
            session.query(SceneRow).filter(SceneRow.id == scene_id).update(
                {SceneRow.idx: TEMP_IDX_BASE + position}, synchronize_session=False
            )
        # Phase 2: final sequential values.
        for position, scene_id in enumerate(scene_ids):
            session.query(SceneRow).filter(SceneRow.id == scene_id).update(
                {SceneRow.idx: position + 1}, synchronize_session=False
            )

    def add_scene(self, project_id: int, title: str = "", insert_after_idx: Optional[int] = None) -> int:
        """Create a visible scene at the end, or right after insert_after_idx.

        Returns:
            The new scene id.
        """
        with self._project_lock(project_id), self._transaction() as session:
            visible = self._visible_ids(session, project_id)
            row = SceneRow(
                project_id=project_id,
                idx=self._max_visible_idx(session, project_id) + 1,
                is_hidden=False,
                title=title,
            )
            session.add(row)
            session.flush()
            scene_id = row.id

            if insert_after_idx is not None and insert_after_idx < len(visible):
                position = max(insert_after_idx, 0)
                self._assign(session, visible[:position] + [scene_id] + visible[position:])

        logger.info(f"[SceneIdx] Added scene {scene_id} to project {project_id}")
        return scene_id

    def hide(self, scene_id: int) -> int:
        """Hide a scene (idx = -id) and renumber the remaining visible scenes.

        Returns:
            The scene's new index.

        Raises:
            SceneNotFoundError: If the scene does not exist.
        """
        project_id = self._project_of(scene_id)
        with self._project_lock(project_id), self._transaction() as session:
            row = session.get(SceneRow, scene_id)
            if row is None:
                raise SceneNotFoundError(scene_id)
            if row.is_hidden:
                return row.idx

            row.idx = -row.id
            row.is_hidden = True
            session.flush()
            visible = self._visible_ids(session, project_id)
            self._assign(session, visible)
            count = len(visible)

        logger.info(f"[SceneIdx] Hid scene {scene_id} (idx=-{scene_id}), renumbered {count} visible")
        return -scene_id

    def restore(self, scene_id: int) -> int:
        """Unhide a scene, placing it after the last visible scene.

        Returns:
            The scene's new index.

        Raises:
            SceneNotFoundError: If the scene does not exist.
        """
        project_id = self._project_of(scene_id)
        with self._project_lock(project_id), self._transaction() as session:
            row = session.get(SceneRow, scene_id)
            if row is None:
                raise SceneNotFoundError(scene_id)
            if not row.is_hidden:
                return row.idx

            new_idx = self._max_visible_idx(session, project_id) + 1
            row.idx = new_idx
            row.is_hidden = False

        logger.info(f"[SceneIdx] Restored scene {scene_id}, new idx={new_idx}")
        return new_idx

    def reorder(self, project_id: int, scene_ids: List[int]) -> int:
        """Reorder visible scenes to follow scene_ids.

        Args:
            project_id: Project whose scenes to reorder.
            scene_ids: Every visible scene id, each once, in the target order.

        Returns:
            Number of scenes renumbered.

        Raises:
            ValueError: If scene_ids is not a permutation of the visible scenes.
        """
        if len(scene_ids) != len(set(scene_ids)):
            raise ValueError("Duplicate scene ids in reorder request")

        with self._project_lock(project_id), self._transaction() as session:
            visible = self._visible_ids(session, project_id)
            if set(scene_ids) != set(visible):
                unknown = sorted(set(scene_ids) - set(visible))
                absent = sorted(set(visible) - set(scene_ids))
                raise ValueError(
                    f"Reorder must list every visible scene of project {project_id} exactly once "
                    f"(unknown: {unknown}, missing: {absent})"
                )
            self._assign(session, list(scene_ids))

        logger.info(f"[SceneIdx] Reordered {len(scene_ids)} scenes in project {project_id}")
        return len(scene_ids)

    def renumber(self, project_id: int) -> int:
        """Close gaps in the visible ordering, keeping relative order.

        Returns:
            Number of visible scenes renumbered.
        """
        with self._project_lock(project_id), self._transaction() as session:
            visible = self._visible_ids(session, project_id)
            self._assign(session, visible)

        logger.info(f"[SceneIdx] Renumbered {len(visible)} visible scenes for project {project_id}")
        return len(visible)

    def list_scenes(self, project_id: int) -> List[Dict[str, object]]:
        """Return the project's scenes, visible first in order, then hidden."""
        with self._transaction() as session:
            rows = session.query(SceneRow).filter(SceneRow.project_id == project_id).all()
            rows.sort(key=lambda r: (r.is_hidden, r.idx if not r.is_hidden else r.id))
            return [
                {"id": r.id, "idx": r.idx, "is_hidden": r.is_hidden, "title": r.title or ""}
                for r in rows
            ]

    def ordering_violations(self, project_id: int) -> List[str]:
        """List every breach of the ordering invariant; empty when it holds."""
        violations: List[str] = []
        scenes = self.list_scenes(project_id)

        visible = [s["idx"] for s in scenes if not s["is_hidden"]]
        expected = list(range(1, len(visible) + 1))
        if sorted(visible) != expected:
            violations.append(f"visible indices {sorted(visible)} != {expected}")

        for s in scenes:
            if s["is_hidden"] and s["idx"] != -s["id"]:
                violations.append(f"hidden scene {s['id']} has idx {s['idx']}, expected {-s['id']}")

        return violations
