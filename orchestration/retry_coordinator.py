# orchestration/retry_coordinator.py
"""Bounded regenerate-and-revalidate loop for one workshop item."""

from __future__ import annotations

import structlog
from agents.workshop_generator_agent import WorkshopGeneratorAgent, voice_tone
from config import settings
from core.exceptions import UpstreamServiceError
from parsing import ParseError
from processing.quality_validator import QualityValidator

from models import Suggestion, VoiceFingerprint, WorkshopItem, WorkshopRequest
from orchestration.models import (
    Attempt,
    AttemptState,
    Exhausted,
    ItemValidationRecord,
    Success,
)

logger = structlog.get_logger(__name__)


class RetryCoordinator:
    """Drive one item through ``Attempt(n)`` until ``Success`` or ``Exhausted``.

    Attempt 1 validates the item's existing suggestions; every later attempt
    first asks for three new suggestions, so an item costs at most
    ``max_attempts - 1`` regeneration calls.
    """

    def __init__(
        self,
        validator: QualityValidator,
        generator: WorkshopGeneratorAgent,
        *,
        max_attempts: int = settings.MAX_VALIDATION_ATTEMPTS,
        max_suggestions: int = settings.MAX_SUGGESTIONS_PER_ITEM,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.validator = validator
        self.generator = generator
        self.max_attempts = max_attempts
        self.max_suggestions = max_suggestions

    def next_state(self, attempt: int, accepted: int) -> AttemptState:
        if accepted >= self.max_suggestions:
            return Success(attempts=attempt)
        if attempt >= self.max_attempts:
            return Exhausted(attempts=attempt)
        return Attempt(number=attempt + 1)

    async def _regenerate(
        self,
        item: WorkshopItem,
        request: WorkshopRequest,
        voice_fingerprint: VoiceFingerprint | None,
        guidance: list[str],
        record: ItemValidationRecord,
    ) -> list[Suggestion]:
        record.regeneration_calls += 1
        try:
            reply = await self.generator.regenerate_suggestions(
                item, request, voice_fingerprint, guidance
            )
        except (UpstreamServiceError, ParseError) as exc:
            logger.warning(
                "Regeneration failed; attempt consumed",
                item_id=item.id,
                error=str(exc),
            )
            return []
        record.usage.add(reply.usage)
        return reply.data.suggestions[: self.max_suggestions]

    async def process_item(
        self,
        item: WorkshopItem,
        request: WorkshopRequest,
        voice_fingerprint: VoiceFingerprint | None = None,
    ) -> ItemValidationRecord:
        record = ItemValidationRecord(item=None)
        accepted: list[Suggestion] = []
        guidance: list[str] = []
        tone = voice_tone(voice_fingerprint)

        state: AttemptState = Attempt(number=1)
        while isinstance(state, Attempt):
            number = state.number
            record.attempts = number
            if number == 1:
                candidates = list(item.suggestions)
            else:
                candidates = await self._regenerate(
                    item, request, voice_fingerprint, guidance, record
                )

            if candidates:
                outcome = await self.validator.validate(
                    item.quote,
                    candidates,
                    voice_tone=tone,
                    attempt_number=number,
                    max_words=request.max_words,
                )
                record.usage.add(outcome.usage)
                for suggestion, result in zip(candidates, outcome.results):
                    if self.validator.passes(result):
                        if len(accepted) < self.max_suggestions:
                            accepted.append(
                                suggestion.model_copy(update={"validation": result})
                            )
                    else:
                        for line in self.validator.guidance_for(result):
                            if line not in guidance:
                                guidance.append(line)
            else:
                logger.info(
                    "No suggestions to validate on attempt",
                    item_id=item.id,
                    attempt=number,
                )

            state = self.next_state(number, len(accepted))

        if isinstance(state, Success):
            logger.debug("Item validated", item_id=item.id, attempts=state.attempts)
        else:
            logger.info(
                "Item exhausted validation attempts",
                item_id=item.id,
                attempts=state.attempts,
                accepted=len(accepted),
            )

        if accepted:
            record.item = item.model_copy(update={"suggestions": accepted})
        else:
            logger.info("Dropping item with no valid suggestions", item_id=item.id)
        return record
