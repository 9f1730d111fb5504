"""Scene ordering persistence."""

from .db import SceneRow, get_engine, get_session, get_session_factory
from .sequencer import SceneIndexSequencer, TEMP_IDX_BASE

__all__ = [
    "SceneRow",
    "get_engine",
    "get_session",
    "get_session_factory",
    "SceneIndexSequencer",
    "TEMP_IDX_BASE",
]
