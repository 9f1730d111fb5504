"""Render service submission client."""

import json
import logging
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, Optional

import requests

from ..config import config
from ..timeline.serializer import BuildArtifact

logger = logging.getLogger(__name__)


class SubmissionStatus(str, Enum):
    """Outcome of a submission attempt."""

    SUBMITTED = "submitted"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class SubmissionResult:
    """Result of submitting a build request."""

    project_id: int
    content_hash: str
    status: SubmissionStatus
    job_id: Optional[str] = None
    error_message: Optional[str] = None
    attempts: int = 0


class SubmissionLedger:
    """JSON file mapping project id to the hash of its last successful submission."""

    def __init__(self, path: Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> Dict[str, str]:
        if not self._path.exists():
            return {}
        with open(self._path, encoding="utf-8") as f:
            return json.load(f)

    def last_hash(self, project_id: int) -> Optional[str]:
        """Return the last submitted hash for a project, if any."""
        return self._load().get(str(project_id))

    def record(self, project_id: int, content_hash: str) -> None:
        """Record a successful submission."""
        entries = self._load()
        entries[str(project_id)] = content_hash
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with open(self._path, "w", encoding="utf-8") as f:
            json.dump(entries, f, indent=2, sort_keys=True)


class RenderClient:
    """Submits BuildRequests to the external render service.

    The content hash is sent as the Idempotency-Key header. A request whose
    hash matches the project's last successful submission is not sent again.
    """

    DEFAULT_TIMEOUT = 30.0
    DEFAULT_MAX_RETRIES = 3
    DEFAULT_RETRY_DELAY = 1.0

    def __init__(
        self,
        endpoint: Optional[str] = None,
        api_key: Optional[str] = None,
        ledger: Optional[SubmissionLedger] = None,
        timeout: float = DEFAULT_TIMEOUT,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_delay: float = DEFAULT_RETRY_DELAY,
    ) -> None:
        """Initialize the render client.

        Args:
            endpoint: Submission URL. Defaults to VBUILD_RENDER_ENDPOINT.
            api_key: Bearer token. Defaults to VBUILD_RENDER_API_KEY.
            ledger: Submission ledger. Defaults to one at VBUILD_LEDGER_PATH.
            timeout: Per-request timeout in seconds.
            max_retries: Maximum attempts for transient failures.
            retry_delay: Base delay between retries (exponential backoff).
        """
        self._endpoint = endpoint or config.render_endpoint
        self._api_key = api_key or config.render_api_key
        self._ledger = ledger or SubmissionLedger(config.ledger_path)
        self._timeout = timeout
        self._max_retries = max(1, max_retries)
        self._retry_delay = retry_delay

        if not self._endpoint:
            raise ValueError("Missing render endpoint. Set VBUILD_RENDER_ENDPOINT.")

    @property
    def ledger(self) -> SubmissionLedger:
        return self._ledger

    def _headers(self, content_hash: str) -> Dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Idempotency-Key": content_hash,
        }
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    def submit(self, artifact: BuildArtifact, force: bool = False) -> SubmissionResult:
        """Submit a build artifact.

        Args:
            artifact: Output of build_request.
            force: Submit even if the hash matches the last submission.

        Returns:
            SubmissionResult. Failures are reported in the result, not raised.
        """
        project_id = artifact.request.project.id
        digest = artifact.content_hash
        result = SubmissionResult(project_id=project_id, content_hash=digest, status=SubmissionStatus.FAILED)

        if not force and self._ledger.last_hash(project_id) == digest:
            logger.info(f"Project {project_id}: hash {digest[:12]} already submitted, skipping")
            result.status = SubmissionStatus.SKIPPED
            return result

        payload = artifact.to_dict()
        for attempt in range(self._max_retries):
            result.attempts = attempt + 1
            try:
                logger.debug(f"Submitting project {project_id} (attempt {attempt + 1}/{self._max_retries})")
                response = requests.post(
                    self._endpoint,
                    json=payload,
                    headers=self._headers(digest),
                    timeout=self._timeout,
                )
            except (requests.ConnectionError, requests.Timeout) as e:
                result.error_message = str(e)
                if attempt == self._max_retries - 1:
                    break
                delay = self._retry_delay * (2**attempt)
                logger.warning(f"Connection error: {e}. Retrying in {delay:.1f}s...")
                time.sleep(delay)
                continue

            if response.status_code >= 500:
                result.error_message = f"{response.status_code}: {response.text[:500]}"
                if attempt == self._max_retries - 1:
                    break
                delay = self._retry_delay * (2**attempt)
                logger.warning(f"Render service error {response.status_code}. Retrying in {delay:.1f}s...")
                time.sleep(delay)
                continue

            if response.status_code >= 400:
                result.error_message = f"{response.status_code}: {response.text[:500]}"
                logger.error(f"Render submission rejected: {result.error_message}")
                return result

            try:
                body = response.json()
            except ValueError:
                body = {}
            result.job_id = body.get("job_id") if isinstance(body, dict) else None
            result.status = SubmissionStatus.SUBMITTED
            result.error_message = None
            self._ledger.record(project_id, digest)
            logger.info(f"Submitted project {project_id} (hash {digest[:12]}, job {result.job_id})")
            return result

        logger.error(f"Render submission failed after {result.attempts} attempt(s): {result.error_message}")
        return result
