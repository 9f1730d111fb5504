import json

import pytest
import yaml
from typer.testing import CliRunner

from vbuild import cli
from vbuild.cli import app

runner = CliRunner()


@pytest.fixture
def manifest_path(tmp_path, make_scene, make_utterance, make_manifest):
    manifest = make_manifest([
        make_scene(1, 1, title="Opening"),
        make_scene(2, 2, title="Talk", active_image={"url": "/images/2.png"}, utterances=[
            make_utterance(1, 1, duration_ms=1200),
            make_utterance(2, 2, duration_ms=800),
        ]),
    ])
    path = tmp_path / "manifest.yaml"
    manifest.to_yaml(path)
    return path


def test_version():
    result = runner.invoke(app, ["--version"])

    assert result.exit_code == 0
    assert "video-build version" in result.output


def test_status(manifest_path):
    result = runner.invoke(app, ["status", "-m", str(manifest_path)])

    assert result.exit_code == 0
    assert "Test project" in result.output
    assert "2 visible, 0 hidden" in result.output


def test_missing_manifest(tmp_path):
    result = runner.invoke(app, ["status", "-m", str(tmp_path / "nope.yaml")])

    assert result.exit_code == 1
    assert "No manifest found" in result.output


def test_durations(manifest_path):
    result = runner.invoke(app, ["durations", "-m", str(manifest_path)])

    assert result.exit_code == 0
    assert "5.0s (default, silent_default)" in result.output
    assert "2.5s (voice, voice_track)" in result.output
    assert "Total: 7.5s" in result.output


def test_unsupported_aspect_ratio_fails_at_load(manifest_path, tmp_path):
    data = yaml.safe_load(manifest_path.read_text())
    data["settings"]["aspect_ratio"] = "4:3"
    manifest_path.write_text(yaml.safe_dump(data))

    result = runner.invoke(app, ["build", "-m", str(manifest_path), "-o", str(tmp_path / "build.json")])

    assert result.exit_code == 1
    assert "Error loading manifest" in result.output
    assert not (tmp_path / "build.json").exists()


def test_preflight_blocks_relative_url(manifest_path):
    result = runner.invoke(app, ["preflight", "-m", str(manifest_path), "--site-url", ""])

    assert result.exit_code == 1
    assert "relative path" in result.output
    assert "Render blocked" in result.output


def test_preflight_passes_with_site_url(manifest_path):
    result = runner.invoke(app, ["preflight", "-m", str(manifest_path), "--site-url", "https://site.example.com"])

    assert result.exit_code == 0
    assert "Ready to render" in result.output


def test_build_writes_request_and_hash(manifest_path, tmp_path):
    output = tmp_path / "build.json"

    result = runner.invoke(
        app,
        ["build", "-m", str(manifest_path), "-o", str(output), "--site-url", "https://site.example.com"],
    )

    assert result.exit_code == 0
    document = json.loads(output.read_text())
    assert document["summary"]["total_duration_ms"] == 7500
    digest = (tmp_path / "build.json.sha256").read_text().strip()
    assert digest in result.output


def test_build_rejected(manifest_path, tmp_path):
    output = tmp_path / "build.json"

    result = runner.invoke(app, ["build", "-m", str(manifest_path), "-o", str(output), "--site-url", ""])

    assert result.exit_code == 1
    assert not output.exists()


def test_submit_requires_configuration(manifest_path, monkeypatch):
    monkeypatch.setattr(cli.config, "render_endpoint", "")

    result = runner.invoke(app, ["submit", "-m", str(manifest_path)])

    assert result.exit_code == 1
    assert "Configuration error" in result.output


def test_scene_commands(database_url):
    for title in ("a", "b", "c"):
        assert runner.invoke(app, ["scenes", "add", "1", "--title", title, "-d", database_url]).exit_code == 0

    assert runner.invoke(app, ["scenes", "hide", "2", "-d", database_url]).exit_code == 0
    assert runner.invoke(app, ["scenes", "reorder", "1", "3", "1", "-d", database_url]).exit_code == 0
    assert runner.invoke(app, ["scenes", "restore", "2", "-d", database_url]).exit_code == 0

    result = runner.invoke(app, ["scenes", "check", "1", "-d", database_url])

    assert result.exit_code == 0
    assert "Ordering is consistent" in result.output


def test_scene_commands_report_errors(database_url):
    runner.invoke(app, ["scenes", "add", "1", "-d", database_url])

    assert runner.invoke(app, ["scenes", "hide", "99", "-d", database_url]).exit_code == 1
    assert runner.invoke(app, ["scenes", "reorder", "1", "5", "-d", database_url]).exit_code == 1
