"""Shared builders for the test suite."""

import pytest

from vbuild.models import BuildSettings, Manifest, Project, Scene, Utterance

CDN = "https://cdn.example.com"


def build_scene(scene_id: int = 1, idx: int = 1, **kwargs) -> Scene:
    """Image scene with a valid absolute asset unless overridden."""
    kwargs.setdefault("active_image", {"url": f"{CDN}/images/{scene_id}.png"})
    return Scene(id=scene_id, idx=idx, **kwargs)


def build_utterance(
    utterance_id: int,
    order_no: int,
    duration_ms=None,
    text: str = "hello there",
    voiced: bool = True,
    **kwargs,
) -> Utterance:
    """Utterance with generated audio when voiced, none otherwise."""
    if voiced:
        kwargs.setdefault("audio_url", f"{CDN}/voices/{utterance_id}.mp3")
        kwargs.setdefault("audio_generation_id", utterance_id)
    return Utterance(id=utterance_id, order_no=order_no, text=text, duration_ms=duration_ms, **kwargs)


def build_manifest(scenes, settings=None, audio_tracks=None, project_id: int = 1) -> Manifest:
    return Manifest(
        project=Project(id=project_id, title="Test project"),
        settings=settings or BuildSettings(),
        scenes=list(scenes),
        audio_tracks=list(audio_tracks or []),
    )


@pytest.fixture
def make_scene():
    return build_scene


@pytest.fixture
def make_utterance():
    return build_utterance


@pytest.fixture
def make_manifest():
    return build_manifest


@pytest.fixture
def settings():
    return BuildSettings()


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite:///{tmp_path / 'scenes.db'}"
