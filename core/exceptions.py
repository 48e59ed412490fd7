# core/exceptions.py
"""Error taxonomy shared by the workshop stages and the stage controller."""

from __future__ import annotations


class WorkshopError(Exception):
    """Base class for all pipeline errors."""


class ClientInputError(WorkshopError):
    """The request is unusable as sent; the caller has to fix it."""

    def __init__(self, message: str, details: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class InvalidTokenError(ClientInputError):
    """A continuation token could not be decoded."""


class UpstreamServiceError(WorkshopError):
    """The generation service returned a non-success response or was unreachable.

    ``status_code`` is ``None`` for transport-level failures (timeouts,
    refused connections) where no HTTP response exists.
    """

    def __init__(
        self, message: str, status_code: int | None = None, body: str = ""
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body

    def __str__(self) -> str:
        base = super().__str__()
        if self.status_code is None:
            return base
        return f"{base} (status {self.status_code}): {self.body[:200]}"


class ValidationJudgeError(WorkshopError):
    """The semantic judge could not produce usable verdicts."""


class StageFailedError(WorkshopError):
    """A required branch of a stage failed, so the stage has no result."""

    def __init__(self, stage: int, reason: str) -> None:
        super().__init__(f"Stage {stage} failed: {reason}")
        self.stage = stage
        self.reason = reason
