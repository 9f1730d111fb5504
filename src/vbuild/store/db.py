"""Scene ordering store.

Holds the ordering columns of the scenes table; the rest of a scene's
content lives with the authoring surface.
"""

import logging
from functools import lru_cache

from sqlalchemy import Boolean, Column, Integer, String, UniqueConstraint, create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

Base = declarative_base()


class SceneRow(Base):
    """
    Scene ordering row.
    idx is the visible rank (1..N) or -id for hidden scenes.
    """
    __tablename__ = "scenes"
    __table_args__ = (UniqueConstraint("project_id", "idx", name="uq_scenes_project_idx"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    project_id = Column(Integer, nullable=False, index=True)
    idx = Column(Integer, nullable=False)
    is_hidden = Column(Boolean, nullable=False, default=False)
    title = Column(String, nullable=True)


@lru_cache(maxsize=8)
def get_engine(database_url: str):
    """
    Return a cached engine for the URL, creating tables on first use.
    """
    if database_url in ("sqlite://", "sqlite:///:memory:"):
        # one shared connection, otherwise every session sees an empty database
        engine = create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    elif database_url.startswith("sqlite"):
        engine = create_engine(database_url, connect_args={"check_same_thread": False})
    else:
        engine = create_engine(database_url)

    Base.metadata.create_all(engine)
    logger.debug(f"Opened scene store at {database_url}")
    return engine


def get_session_factory(database_url: str) -> sessionmaker:
    """Return a session factory bound to the URL's engine."""
    return sessionmaker(bind=get_engine(database_url))


def get_session(database_url: str) -> Session:
    """Open a new session."""
    return get_session_factory(database_url)()
