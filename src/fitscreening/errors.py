"""Exception hierarchy shared by the pipeline, the store and the mailbox."""

from __future__ import annotations


class FitScreeningError(Exception):
    """Base class for all package errors."""


class ExtractionError(FitScreeningError):
    """Inference is unavailable or returned a result that fails its schema."""


class YOEError(FitScreeningError):
    """Years-of-experience calculation failed or was not confident enough."""


class ScoringError(FitScreeningError):
    """Dimension scoring call failed."""


class StoreError(FitScreeningError):
    """Job record could not be read, written or deleted."""


class MailboxTimeoutError(FitScreeningError, TimeoutError):
    """Client gave up waiting for a response."""

    def __init__(self, channel: str, request_id: str, waited: float):
        super().__init__(
            f"No {channel} response for request {request_id} after {waited:.1f}s"
        )
        self.channel = channel
        self.request_id = request_id
        self.waited = waited


class MismatchError(FitScreeningError):
    """Response envelope belongs to a different request."""

    def __init__(self, expected: str, actual: str | None):
        super().__init__(f"Expected response for {expected!r}, found {actual!r}")
        self.expected = expected
        self.actual = actual


class RemoteEvaluationError(FitScreeningError):
    """Orchestrator answered a request with an error envelope."""


__all__ = [
    "FitScreeningError",
    "ExtractionError",
    "YOEError",
    "ScoringError",
    "StoreError",
    "MailboxTimeoutError",
    "MismatchError",
    "RemoteEvaluationError",
]
