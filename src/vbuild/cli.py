"""CLI entry point for the video build engine."""

import logging
import typer
from pathlib import Path
from typing import List, Optional

from . import __version__
from .config import config
from .errors import BuildRejectedError, Issue, SceneNotFoundError
from .models import Manifest

app = typer.Typer(
    name="video-build",
    help="Compose scene timelines into render-ready build requests",
    no_args_is_help=True
)

scenes_app = typer.Typer(help="Maintain scene ordering", no_args_is_help=True)
app.add_typer(scenes_app, name="scenes")


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
    )


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"video-build version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit"
    )
) -> None:
    """Video Build Engine - turn authored scenes into a build request."""
    pass


def _manifest_option():
    return typer.Option(
        Path("manifest.yaml"),
        "--manifest",
        "-m",
        help="Path to project manifest YAML file",
        file_okay=True,
        dir_okay=False
    )


def _site_url_option():
    return typer.Option(
        None,
        "--site-url",
        help="Base URL for relative storage references (default: VBUILD_SITE_URL)"
    )


def _verbose_option():
    return typer.Option(
        False,
        "--verbose",
        help="Enable verbose logging"
    )


def _database_option():
    return typer.Option(
        config.database_url,
        "--database",
        "-d",
        help="SQLAlchemy URL of the scene store (default: VBUILD_DATABASE_URL)"
    )


def _load_manifest(path: Path, site_url: Optional[str] = None) -> Manifest:
    """Load a manifest or exit with an error line."""
    if not path.exists():
        typer.echo(f"❌ No manifest found at {path}")
        raise typer.Exit(1)
    try:
        manifest = Manifest.from_yaml(path)
    except Exception as e:
        typer.echo(f"❌ Error loading manifest: {e}")
        raise typer.Exit(1)

    base = site_url if site_url is not None else config.site_url
    return manifest.resolve_urls(base) if base else manifest


def _format_issue(issue: Issue) -> str:
    where = f"scene {issue.scene_idx} (id {issue.scene_id})" if issue.scene_id is not None else "project"
    return f"{where} [{issue.field}] {issue.reason}"


def _print_issues(errors: List[Issue], warnings: List[Issue]) -> None:
    if errors:
        typer.echo(f"\n❌ Errors ({len(errors)}):")
        for issue in errors:
            typer.echo(f"   - {_format_issue(issue)}")
    if warnings:
        typer.echo(f"\n⚠️  Warnings ({len(warnings)}):")
        for issue in warnings:
            typer.echo(f"   - {_format_issue(issue)}")


@app.command()
def status(
    manifest_path: Path = _manifest_option(),
) -> None:
    """Show project status."""
    from .timeline import validate_assets

    manifest = _load_manifest(manifest_path)
    settings = manifest.settings
    visible = manifest.visible_scenes()
    hidden = len(manifest.scenes) - len(visible)

    typer.echo(f"📁 Project: {manifest.project.title or manifest.project.id}")
    typer.echo(f"   Preset: {settings.preset} ({settings.aspect_ratio}, {settings.resolution}, {settings.fps}fps)")
    typer.echo(f"   Scenes: {len(visible)} visible, {hidden} hidden")

    track = manifest.active_track()
    if track is not None:
        typer.echo(f"   Background audio: {track.url or '(no url)'}")

    report = validate_assets(manifest)
    missing_ids = {issue.scene_id for issue in report.missing}

    typer.echo(f"\n🎬 Scenes ({report.ready_count}/{report.total_count} ready):")
    for scene in visible:
        status_icon = "⏳" if scene.id in missing_ids else "✅"
        voices = sum(1 for u in scene.utterances if u.has_audio)
        typer.echo(
            f"   {status_icon} {scene.idx}. {scene.title or scene.id} "
            f"[{scene.display_kind.value}] {voices}/{len(scene.utterances)} voiced"
        )


@app.command()
def durations(
    manifest_path: Path = _manifest_option(),
    verbose: bool = _verbose_option(),
) -> None:
    """Show the resolved duration of every visible scene."""
    from .timeline import build_voice_track, resolve_timeline_duration

    setup_logging(verbose)
    manifest = _load_manifest(manifest_path)

    total_ms = 0
    typer.echo("⏱️  Scene durations:")
    for scene in manifest.visible_scenes():
        result = resolve_timeline_duration(scene, build_voice_track(scene))
        total_ms += result.duration_ms
        typer.echo(
            f"   {scene.idx}. {scene.title or scene.id}: {result.duration_ms / 1000:.1f}s "
            f"({result.reason.value}, {result.rule})"
        )
    typer.echo(f"   Total: {total_ms / 1000:.1f}s")


@app.command()
def preflight(
    manifest_path: Path = _manifest_option(),
    site_url: Optional[str] = _site_url_option(),
    verbose: bool = _verbose_option(),
) -> None:
    """Validate a project before building."""
    from .timeline import run_preflight

    setup_logging(verbose)
    manifest = _load_manifest(manifest_path, site_url)
    report = run_preflight(manifest).report

    summary = report.summary
    typer.echo(f"🔍 Preflight: {summary.ready_scenes}/{summary.total_scenes} scene(s) composed")
    _print_issues(report.errors, report.warnings)

    if not report.can_generate:
        typer.echo("\n❌ Render blocked")
        raise typer.Exit(1)
    typer.echo("\n✅ Ready to render")


@app.command()
def build(
    manifest_path: Path = _manifest_option(),
    output: Path = typer.Option(
        Path("output/build.json"),
        "--output",
        "-o",
        help="Output build request path"
    ),
    site_url: Optional[str] = _site_url_option(),
    verbose: bool = _verbose_option(),
) -> None:
    """Build the render request and write it with its content hash."""
    from .timeline import build_request, write_artifact

    setup_logging(verbose)
    manifest = _load_manifest(manifest_path, site_url)

    try:
        artifact = build_request(manifest)
    except BuildRejectedError as e:
        _print_issues(e.report.errors, e.report.warnings)
        typer.echo(f"\n❌ {e}")
        raise typer.Exit(1)

    try:
        hash_path = write_artifact(artifact, output)
    except OSError as e:
        typer.echo(f"❌ Error writing build request: {e}")
        raise typer.Exit(1)

    summary = artifact.request.summary
    typer.echo(f"✅ Build request written: {output}")
    typer.echo(f"   Scenes: {summary.total_scenes}")
    typer.echo(f"   Duration: {summary.total_duration_ms / 1000:.1f}s")
    typer.echo(f"   Hash: {artifact.content_hash} ({hash_path.name})")
    if artifact.report.warnings:
        typer.echo(f"   ⚠️  {len(artifact.report.warnings)} warning(s), run 'video-build preflight' for details")


@app.command()
def submit(
    manifest_path: Path = _manifest_option(),
    site_url: Optional[str] = _site_url_option(),
    force: bool = typer.Option(
        False,
        "--force",
        help="Submit even if this exact build was already submitted"
    ),
    verbose: bool = _verbose_option(),
) -> None:
    """Build and submit the render request."""
    from .services import RenderClient, SubmissionStatus
    from .timeline import build_request

    setup_logging(verbose)

    try:
        config.validate_render_required()
    except ValueError as e:
        typer.echo(f"❌ Configuration error: {e}")
        raise typer.Exit(1)

    manifest = _load_manifest(manifest_path, site_url)
    try:
        artifact = build_request(manifest)
    except BuildRejectedError as e:
        _print_issues(e.report.errors, e.report.warnings)
        typer.echo(f"\n❌ {e}")
        raise typer.Exit(1)

    client = RenderClient()
    result = client.submit(artifact, force=force)

    if result.status == SubmissionStatus.SKIPPED:
        typer.echo(f"⏭️  Unchanged since last submission (hash {result.content_hash[:12]}), nothing to do")
    elif result.status == SubmissionStatus.SUBMITTED:
        typer.echo(f"🚀 Submitted project {result.project_id}")
        if result.job_id:
            typer.echo(f"   Job: {result.job_id}")
        typer.echo(f"   Hash: {result.content_hash}")
    else:
        typer.echo(f"❌ Submission failed after {result.attempts} attempt(s): {result.error_message}")
        raise typer.Exit(1)


def _sequencer(database: str):
    from .store import SceneIndexSequencer

    return SceneIndexSequencer.from_url(database)


@scenes_app.command("add")
def scenes_add(
    project_id: int = typer.Argument(..., help="Project ID"),
    title: str = typer.Option("", "--title", "-t", help="Scene title"),
    after: Optional[int] = typer.Option(
        None,
        "--after",
        help="Insert after this index (0 for first); appended if omitted"
    ),
    database: str = _database_option(),
) -> None:
    """Add a scene to a project."""
    sequencer = _sequencer(database)
    scene_id = sequencer.add_scene(project_id, title=title, insert_after_idx=after)
    typer.echo(f"✅ Added scene {scene_id} to project {project_id}")


@scenes_app.command("hide")
def scenes_hide(
    scene_id: int = typer.Argument(..., help="Scene ID"),
    database: str = _database_option(),
) -> None:
    """Hide a scene and close the gap it leaves."""
    try:
        idx = _sequencer(database).hide(scene_id)
    except SceneNotFoundError as e:
        typer.echo(f"❌ {e}")
        raise typer.Exit(1)
    typer.echo(f"🙈 Scene {scene_id} hidden (idx {idx})")


@scenes_app.command("restore")
def scenes_restore(
    scene_id: int = typer.Argument(..., help="Scene ID"),
    database: str = _database_option(),
) -> None:
    """Restore a hidden scene at the end of the ordering."""
    try:
        idx = _sequencer(database).restore(scene_id)
    except SceneNotFoundError as e:
        typer.echo(f"❌ {e}")
        raise typer.Exit(1)
    typer.echo(f"👁️  Scene {scene_id} restored at idx {idx}")


@scenes_app.command("reorder")
def scenes_reorder(
    project_id: int = typer.Argument(..., help="Project ID"),
    scene_ids: List[int] = typer.Argument(..., help="Every visible scene ID in the new order"),
    database: str = _database_option(),
) -> None:
    """Reorder the visible scenes of a project."""
    try:
        count = _sequencer(database).reorder(project_id, scene_ids)
    except ValueError as e:
        typer.echo(f"❌ {e}")
        raise typer.Exit(1)
    typer.echo(f"✅ Reordered {count} scene(s)")


@scenes_app.command("renumber")
def scenes_renumber(
    project_id: int = typer.Argument(..., help="Project ID"),
    database: str = _database_option(),
) -> None:
    """Close gaps in the visible scene ordering."""
    count = _sequencer(database).renumber(project_id)
    typer.echo(f"✅ Renumbered {count} visible scene(s)")


@scenes_app.command("check")
def scenes_check(
    project_id: int = typer.Argument(..., help="Project ID"),
    database: str = _database_option(),
) -> None:
    """List scenes and verify the ordering invariant."""
    sequencer = _sequencer(database)

    typer.echo(f"📋 Project {project_id}:")
    for scene in sequencer.list_scenes(project_id):
        icon = "🙈" if scene["is_hidden"] else "  "
        typer.echo(f"   {icon} idx {scene['idx']:>4}  id {scene['id']}  {scene['title']}")

    violations = sequencer.ordering_violations(project_id)
    if violations:
        typer.echo("❌ Ordering violations:")
        for violation in violations:
            typer.echo(f"   - {violation}")
        raise typer.Exit(1)
    typer.echo("✅ Ordering is consistent")


if __name__ == "__main__":
    app()
