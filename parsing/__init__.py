# parsing/__init__.py
"""Parse-or-error boundary for generation-service replies."""

from __future__ import annotations

import json
import re
from typing import Any, TypeVar

import structlog
from pydantic import BaseModel, ValidationError

from core.exceptions import WorkshopError

logger = structlog.get_logger(__name__)

ReplyT = TypeVar("ReplyT", bound=BaseModel)

_FENCE_RE = re.compile(r"```(?:[a-zA-Z0-9_-]+)?\s*([\s\S]*?)\s*```")


class ParseError(WorkshopError):
    """The reply does not contain JSON matching the expected shape."""

    def __init__(self, message: str, raw_text: str = "") -> None:
        super().__init__(message)
        self.raw_text = raw_text


def extract_json_text(text: str) -> str:
    """Return the contents of the first fenced block, or the stripped text."""
    match = _FENCE_RE.search(text)
    if match:
        return match.group(1).strip()
    return text.strip()


def parse_json_object(text: str) -> dict[str, Any]:
    """Decode ``text`` (optionally fenced) into a JSON object."""
    if not isinstance(text, str) or not text.strip():
        raise ParseError("Reply was empty", raw_text=text or "")
    json_text = extract_json_text(text)
    try:
        data = json.loads(json_text)
    except json.JSONDecodeError as exc:
        logger.warning(
            "Failed to decode JSON from reply: %s. Input: %s...",
            exc,
            json_text[:300],
        )
        raise ParseError(f"Reply is not valid JSON: {exc}", raw_text=text) from exc
    if not isinstance(data, dict):
        raise ParseError(
            f"Reply JSON was {type(data).__name__}, expected an object",
            raw_text=text,
        )
    return data


def parse_reply(text: str, reply_model: type[ReplyT]) -> ReplyT:
    """Parse ``text`` into ``reply_model`` or raise ``ParseError``."""
    data = parse_json_object(text)
    try:
        return reply_model.model_validate(data)
    except ValidationError as exc:
        logger.warning(
            "Reply did not match %s: %s",
            reply_model.__name__,
            exc.errors(include_url=False)[:3],
        )
        raise ParseError(
            f"Reply did not match {reply_model.__name__}: {exc.error_count()} error(s)",
            raw_text=text,
        ) from exc


__all__ = ["ParseError", "extract_json_text", "parse_json_object", "parse_reply"]
