"""Moderation check over transcript paragraphs."""
from __future__ import annotations

import logging
from typing import List

from ..errors import ModerationFlaggedError, PipelineError
from ..orchestration.dispatcher import BoundedDispatcher, DispatchError
from ..processing.paragraphs import make_paragraphs
from ..providers.base import ModerationClient
from ..utils.retry import RetryExecutor, RetryExhaustedError

logger = logging.getLogger(__name__)

MODERATION_PARAGRAPH_LENGTH = 1800


class _Flagged(Exception):
    pass


class ModerationStage:
    """Rejects a transcript when any of its paragraphs is flagged."""

    def __init__(self, client: ModerationClient, dispatcher: BoundedDispatcher, retry: RetryExecutor) -> None:
        self.client = client
        self.dispatcher = dispatcher
        self.retry = retry

    async def run(self, transcript: str) -> int:
        """Moderate the transcript.

        Returns:
            Number of paragraphs checked

        Raises:
            ModerationFlaggedError: If a paragraph is flagged
            PipelineError: If the moderation service cannot be reached
        """
        paragraphs: List[str] = make_paragraphs(transcript, MODERATION_PARAGRAPH_LENGTH)
        logger.info(f"Running moderation check on {len(paragraphs)} paragraph(s)")

        async def check(paragraph: str) -> bool:
            flagged = await self.retry.run(lambda: self.client.moderate(paragraph), label="moderation")
            if flagged:
                raise _Flagged()
            return flagged

        try:
            await self.dispatcher.map(paragraphs, check, label="moderation")
        except DispatchError as e:
            if isinstance(e.cause, _Flagged):
                raise ModerationFlaggedError(
                    f"Transcript paragraph {e.index} was flagged by the moderation check", index=e.index
                ) from None
            cause = e.cause.last_exception if isinstance(e.cause, RetryExhaustedError) else e.cause
            raise PipelineError(
                f"Moderation check failed for paragraph {e.index}: {cause}", index=e.index, stage="moderation"
            ) from e.cause

        logger.info("Moderation check passed")
        return len(paragraphs)
