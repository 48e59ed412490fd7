# models/continuation_token.py
"""Continuation token: the only channel of state between stage calls.

Wire format is base64 (standard alphabet) of the UTF-8 bytes of the token's
JSON document. The token travels in the request body, never in a URL.
"""

from __future__ import annotations

import base64
import binascii

import structlog
from pydantic import Field, ValidationError

from core.exceptions import InvalidTokenError

from .workshop_models import (
    ExperienceFingerprint,
    RubricAnalysis,
    VoiceFingerprint,
    WorkshopBaseModel,
    WorkshopItem,
    WorkshopRequest,
)

logger = structlog.get_logger(__name__)


class ContinuationToken(WorkshopBaseModel):
    """Original request plus everything produced by the completed stages."""

    request: WorkshopRequest
    completed_stage: int = Field(default=0, ge=0, le=3)
    voice_fingerprint: VoiceFingerprint | None = None
    experience_fingerprint: ExperienceFingerprint | None = None
    rubric_analysis: RubricAnalysis | None = None
    workshop_items: list[WorkshopItem] = Field(default_factory=list)

    def encode(self) -> str:
        payload = self.model_dump_json().encode("utf-8")
        return base64.b64encode(payload).decode("ascii")

    @classmethod
    def decode(cls, encoded: str) -> ContinuationToken:
        if not isinstance(encoded, str) or not encoded.strip():
            raise InvalidTokenError("Continuation token is empty or not a string")
        try:
            raw = base64.b64decode(encoded.strip(), validate=True)
            document = raw.decode("utf-8")
        except (binascii.Error, ValueError) as exc:
            # UnicodeDecodeError is a ValueError
            raise InvalidTokenError(
                "Continuation token is not valid base64/UTF-8", details=str(exc)
            ) from exc
        try:
            return cls.model_validate_json(document)
        except ValidationError as exc:
            logger.warning(
                "Continuation token failed schema validation.",
                error_count=exc.error_count(),
            )
            raise InvalidTokenError(
                "Continuation token does not match the expected structure",
                details=str(exc),
            ) from exc


def encode_token(token: ContinuationToken) -> str:
    """Serialize ``token`` into an opaque string."""
    return token.encode()


def decode_token(encoded: str) -> ContinuationToken:
    """Inverse of :func:`encode_token`; raises ``InvalidTokenError``."""
    return ContinuationToken.decode(encoded)
