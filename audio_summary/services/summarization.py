"""Summarization stage: one completion request per transcript chunk."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional

from ..errors import SummarizationStageError
from ..models import SummaryRequest, SummaryUnit, TranscriptChunk
from ..orchestration.dispatcher import BoundedDispatcher, DispatchError
from ..providers.base import CompletionClient
from ..utils.retry import RetryExecutor, RetryExhaustedError
from .prompts import build_system_message, build_user_prompt

logger = logging.getLogger(__name__)


class SummarizationStage:
    """Sends transcript chunks to the completion service concurrently."""

    def __init__(
        self,
        client: CompletionClient,
        dispatcher: BoundedDispatcher,
        retry: RetryExecutor,
        model: Optional[str] = None,
    ) -> None:
        self.client = client
        self.dispatcher = dispatcher
        self.retry = retry
        self.model = model or client.model

    async def run(
        self, chunks: List[TranscriptChunk], request: SummaryRequest, now: Optional[datetime] = None
    ) -> List[SummaryUnit]:
        """Summarize chunks, returning units aligned with the chunks sent.

        With no sections selected only the first chunk is sent, since the
        title is the only thing left to produce.

        Raises:
            SummarizationStageError: If there is nothing to summarize or a chunk fails
        """
        if not chunks:
            raise SummarizationStageError("Transcript is empty; nothing to summarize")

        targets = chunks if request.sections else chunks[:1]
        system_message = build_system_message(request)
        now = now or datetime.now()
        logger.info(f"Summarizing {len(targets)} chunk(s) with {self.client.provider_name} {self.model}")

        async def summarize(chunk: TranscriptChunk) -> SummaryUnit:
            prompt = build_user_prompt(chunk.text, now)
            response = await self.retry.run(
                lambda: self.client.complete(
                    prompt, system_message, temperature=request.temperature, model=self.model
                ),
                label=f"summary of chunk {chunk.index}",
            )
            logger.info(f"Chunk {chunk.index} summarized ({response.usage.total_tokens} tokens)")
            return SummaryUnit(
                index=chunk.index, content=response.content, usage=response.usage, model=response.model
            )

        try:
            return await self.dispatcher.map(targets, summarize, label="summarization")
        except DispatchError as e:
            cause = e.cause
            if isinstance(cause, RetryExhaustedError):
                cause = cause.last_exception
            raise SummarizationStageError(
                f"Summarization failed for chunk {e.index}: {cause}", index=e.index
            ) from e.cause
