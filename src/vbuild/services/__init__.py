"""External service integrations."""

from .render import RenderClient, SubmissionLedger, SubmissionResult, SubmissionStatus

__all__ = [
    "RenderClient",
    "SubmissionLedger",
    "SubmissionResult",
    "SubmissionStatus",
]
