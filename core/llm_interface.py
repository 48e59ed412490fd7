# core/llm_interface.py
"""
Handles all direct interactions with the external text-generation service.

One ``LLMService`` is constructed per process (or per request) and handed to
every stage explicitly. Each call issues exactly one HTTP request; retrying is
always the caller's decision.
"""

# Standard library imports
import asyncio
import time
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

import httpx

# Third-party imports
import structlog
from pydantic import BaseModel

# Local imports
from config import settings
from core.exceptions import UpstreamServiceError
from core.usage import TokenUsage
from parsing import ParseError, parse_reply

logger = structlog.get_logger(__name__)

ReplyT = TypeVar("ReplyT", bound=BaseModel)


@dataclass
class GenerationReply(Generic[ReplyT]):
    """Parsed reply plus the usage of the call that produced it."""

    data: ReplyT
    usage: TokenUsage = field(default_factory=TokenUsage)


class LLMService:
    """Uniform call/parse wrapper around the generation service."""

    def __init__(
        self,
        timeout: float = settings.GENERATION_TIMEOUT_SECONDS,
        max_concurrency: int = settings.MAX_CONCURRENT_GENERATION_CALLS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        # Use a single async client for all requests to reuse connections
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)
        # Bound in-flight calls across all concurrent branches
        self._semaphore = asyncio.Semaphore(max_concurrency)
        logger.info(
            f"LLMService initialized with a concurrency limit of {max_concurrency} and timeout {timeout}s."
        )

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> "LLMService":
        return self

    async def __aexit__(self, *_exc: object) -> None:
        await self.aclose()

    @staticmethod
    def _resolve_api_key() -> str:
        # Read at call time so rotated credentials are picked up
        api_key = settings.ANTHROPIC_API_KEY
        if not api_key:
            raise UpstreamServiceError("ANTHROPIC_API_KEY not configured")
        return api_key

    @staticmethod
    def _extract_text(data: dict[str, Any]) -> str:
        blocks = data.get("content") or []
        parts = [
            block.get("text", "")
            for block in blocks
            if isinstance(block, dict) and block.get("type", "text") == "text"
        ]
        return "".join(parts)

    async def call_text(
        self,
        system: str,
        user: str,
        *,
        model: str | None = None,
        max_tokens: int = 2048,
        temperature: float = 0.7,
        label: str = "generation",
    ) -> tuple[str, TokenUsage]:
        """Issue one call and return the raw reply text with its usage."""
        headers = {
            "x-api-key": self._resolve_api_key(),
            "anthropic-version": settings.ANTHROPIC_VERSION,
            "content-type": "application/json",
        }
        payload: dict[str, Any] = {
            "model": model or settings.GENERATION_MODEL,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "system": system,
            "messages": [{"role": "user", "content": user}],
        }

        async with self._semaphore:
            started = time.perf_counter()
            logger.debug(
                "Calling generation service",
                label=label,
                model=payload["model"],
                max_tokens=max_tokens,
                temperature=temperature,
            )
            try:
                response = await self._client.post(
                    f"{settings.GENERATION_API_BASE}/v1/messages",
                    json=payload,
                    headers=headers,
                )
            except httpx.TimeoutException as e_timeout:
                logger.warning("Generation call timed out", label=label)
                raise UpstreamServiceError(
                    f"{label}: request timed out: {e_timeout}"
                ) from e_timeout
            except httpx.RequestError as e_req:
                logger.warning("Generation call transport error", label=label, error=str(e_req))
                raise UpstreamServiceError(
                    f"{label}: request error: {e_req}"
                ) from e_req
            elapsed_ms = int((time.perf_counter() - started) * 1000)

        if response.is_error:
            logger.error(
                "Generation service returned an error",
                label=label,
                status=response.status_code,
                body=response.text[:500],
            )
            raise UpstreamServiceError(
                f"{label}: generation service error",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            data = response.json()
        except ValueError as e_json:
            raise UpstreamServiceError(
                f"{label}: response body was not JSON",
                status_code=response.status_code,
                body=response.text,
            ) from e_json

        raw_usage = data.get("usage") or {}
        usage = TokenUsage(
            input_tokens=int(raw_usage.get("input_tokens", 0) or 0),
            output_tokens=int(raw_usage.get("output_tokens", 0) or 0),
            calls=1,
        )
        text = self._extract_text(data)
        logger.info(
            "Generation call complete",
            label=label,
            elapsed_ms=elapsed_ms,
            input_tokens=usage.input_tokens,
            output_tokens=usage.output_tokens,
        )
        if not text.strip():
            raise ParseError(f"{label}: reply had no text content")
        return text, usage

    async def call_json(
        self,
        system: str,
        user: str,
        reply_model: type[ReplyT],
        *,
        model: str | None = None,
        max_tokens: int = 2048,
        temperature: float = 0.7,
        label: str = "generation",
    ) -> GenerationReply[ReplyT]:
        """Issue one call and parse the reply into ``reply_model``.

        Raises:
            UpstreamServiceError: non-success response or transport failure.
            ParseError: the reply holds no JSON matching ``reply_model``.
        """
        text, usage = await self.call_text(
            system,
            user,
            model=model,
            max_tokens=max_tokens,
            temperature=temperature,
            label=label,
        )
        try:
            parsed = parse_reply(text, reply_model)
        except ParseError:
            logger.warning(
                "Failed to parse reply", label=label, reply_preview=text[:200]
            )
            raise
        return GenerationReply(data=parsed, usage=usage)
