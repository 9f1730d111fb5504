"""BuildRequest assembly, canonical serialization and content hashing."""

import hashlib
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

from ..errors import BuildRejectedError
from ..models.build import (
    SCHEMA_VERSION,
    BuildRequest,
    OutputBlock,
    ProjectRef,
    Resolution,
    Timeline,
)
from ..models.manifest import Manifest
from .compositor import Composition
from .preflight import PreflightReport, run_preflight

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BuildArtifact:
    """A BuildRequest with the hash used as its idempotency key."""

    request: BuildRequest
    content_hash: str
    report: PreflightReport

    def to_dict(self) -> Dict[str, Any]:
        return request_payload(self.request)


def request_payload(request: BuildRequest) -> Dict[str, Any]:
    """Return the JSON-ready form of a request, absent optionals omitted."""
    return request.model_dump(mode="json", exclude_none=True)


def canonical_json(payload: Dict[str, Any]) -> str:
    """Serialize with sorted keys and no whitespace so equal content is byte-equal."""
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def content_hash(payload: Dict[str, Any]) -> str:
    """Return the SHA-256 hex digest of the canonical form."""
    return hashlib.sha256(canonical_json(payload).encode("utf-8")).hexdigest()


def assemble_request(manifest: Manifest, composition: Composition) -> BuildRequest:
    """Assemble the versioned document from a composition."""
    settings = manifest.settings
    dims = settings.dimensions
    return BuildRequest(
        schema_version=SCHEMA_VERSION,
        project=ProjectRef(id=manifest.project.id, title=manifest.project.title),
        output=OutputBlock(
            resolution=Resolution(width=dims["width"], height=dims["height"]),
            fps=settings.fps,
            codec=settings.codec,
            aspect_ratio=settings.aspect_ratio,
            preset=settings.preset,
        ),
        timeline=Timeline(scenes=composition.scenes),
        bgm=composition.bgm,
        summary=composition.summary(),
    )


def build_request(manifest: Manifest) -> BuildArtifact:
    """Run preflight and, if it passes, emit the document and its hash.

    Args:
        manifest: Project snapshot with absolute asset URLs.

    Returns:
        BuildArtifact with the request, its content hash and the preflight report.

    Raises:
        BuildRejectedError: If preflight found critical errors.
    """
    preflight = run_preflight(manifest)
    if not preflight.report.can_generate:
        raise BuildRejectedError(preflight.report)

    request = assemble_request(manifest, preflight.composition)
    digest = content_hash(request_payload(request))
    logger.info(
        f"Built request for project {manifest.project.id}: "
        f"{request.summary.total_scenes} scene(s), {request.summary.total_duration_ms}ms, hash {digest[:12]}"
    )
    return BuildArtifact(request=request, content_hash=digest, report=preflight.report)


def write_artifact(artifact: BuildArtifact, output_path: Path) -> Path:
    """Write the document as JSON and its hash next to it (<name>.sha256).

    Returns:
        Path of the hash file.
    """
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(artifact.to_dict(), f, ensure_ascii=False, indent=2, sort_keys=True)

    hash_path = output_path.with_name(output_path.name + ".sha256")
    hash_path.write_text(artifact.content_hash + "\n", encoding="utf-8")
    return hash_path
