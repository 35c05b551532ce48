"""Transcript language detection and paragraph translation."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List

from ..accounting.cost import CostAccountant
from ..errors import TranslationStageError
from ..models import TokenUsage
from ..orchestration.dispatcher import BoundedDispatcher, DispatchError
from ..processing.json_repair_chain import repair_structured_output
from ..providers.base import CompletionClient, CompletionResponse
from ..utils.retry import RetryExecutor, RetryExhaustedError
from .prompts import LANGUAGE_DETECTION_MESSAGE, build_translation_message, language_label

logger = logging.getLogger(__name__)


@dataclass
class DetectedLanguage:
    label: str
    code: str


class TranslationStage:
    """Detects the transcript language and translates it paragraph by paragraph.

    Both calls are billed to the run's ledger, under ``language_detection``
    and ``translation``.
    """

    def __init__(
        self,
        client: CompletionClient,
        dispatcher: BoundedDispatcher,
        retry: RetryExecutor,
        accountant: CostAccountant,
        temperature: float = 0.2,
    ) -> None:
        self.client = client
        self.dispatcher = dispatcher
        self.retry = retry
        self.accountant = accountant
        self.temperature = temperature

    async def detect_language(self, sample: str) -> DetectedLanguage:
        """Ask the completion model which language ``sample`` is written in.

        Raises:
            TranslationStageError: If the call fails or the reply has no language code
        """
        try:
            response = await self.retry.run(
                lambda: self.client.complete(sample, LANGUAGE_DETECTION_MESSAGE, temperature=0.0),
                label="language detection",
            )
        except RetryExhaustedError as e:
            raise TranslationStageError(f"Language detection failed: {e.last_exception}") from e
        except Exception as e:
            raise TranslationStageError(f"Language detection failed: {e}") from e

        self.accountant.record_completion(
            "language_detection", self.client.provider_name, response.model, response.usage
        )

        result = repair_structured_output(response.content)
        code = str(result.value.get("value", "")).strip().lower() if result.ok else ""
        if not code:
            raise TranslationStageError(f"Language detection returned no language code: {response.content!r}")

        label = str(result.value.get("label") or language_label(code))
        logger.info(f"Detected transcript language: {label} ({code})")
        return DetectedLanguage(label=label, code=code)

    async def translate(self, paragraphs: List[str], language: str) -> List[str]:
        """Translate paragraphs into ``language``, preserving their order.

        Raises:
            TranslationStageError: If any paragraph fails after retries
        """
        system_message = build_translation_message(language)
        logger.info(f"Translating {len(paragraphs)} paragraph(s) into {language_label(language)}")

        async def translate_one(paragraph: str) -> CompletionResponse:
            return await self.retry.run(
                lambda: self.client.complete(
                    paragraph, system_message, temperature=self.temperature, json_mode=False
                ),
                label="translation",
            )

        try:
            responses = await self.dispatcher.map(paragraphs, translate_one, label="translation")
        except DispatchError as e:
            cause = e.cause.last_exception if isinstance(e.cause, RetryExhaustedError) else e.cause
            raise TranslationStageError(
                f"Translation failed for paragraph {e.index}: {cause}", index=e.index
            ) from e.cause

        if responses:
            usage = sum((r.usage for r in responses), TokenUsage())
            self.accountant.record_completion(
                "translation", self.client.provider_name, responses[0].model, usage
            )
        return [response.content.strip() for response in responses]
