"""Linear audio summary pipeline.

validate → probe → plan/segment → transcribe → moderate → split →
summarize → repair → merge → translate, with every charge recorded in the
run's cost ledger.
"""
from __future__ import annotations

import asyncio
import logging
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, List, Optional

from ..accounting.cost import CostAccountant, RateTable
from ..config import Config, get_config
from ..errors import DurationUnavailableError, TranscriptionStageError
from ..models import (
    PipelineContext,
    PipelineResult,
    StructuredSummary,
    SummaryRequest,
    TokenUsage,
)
from ..orchestration.dispatcher import BoundedDispatcher
from ..processing.json_repair_chain import parse_structured_summary
from ..processing.merge import merge_summaries
from ..processing.paragraphs import make_paragraphs
from ..processing.token_splitter import split_transcript
from ..processing.tokenizer import TiktokenEncoder, TokenEncoder
from ..providers.base import CompletionClient, ModerationClient, TranscriptionClient
from ..providers.factory import ProviderFactory
from ..services.audio_tools import AudioToolkit, FFmpegAudioToolkit
from ..services.chunk_planner import plan_chunks, prepare_pieces
from ..services.moderation import ModerationStage
from ..services.summarization import SummarizationStage
from ..services.transcription import TranscriptionStage, combine_transcript
from ..services.translation import TranslationStage
from ..utils.file_validation import validate_audio_file
from ..utils.retry import RetryConfig, RetryExecutor
from ..utils.secure_temp import remove_files, secure_temp_directory

logger = logging.getLogger(__name__)


class SummaryPipeline:
    """Turns an audio file into a merged summary document and a cost ledger.

    Collaborators default to the ones named in the configuration; tests and
    embedders can pass their own. A pipeline instance holds no per-run
    state, so one instance may serve several concurrent runs.
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        transcription_client: Optional[TranscriptionClient] = None,
        completion_client: Optional[CompletionClient] = None,
        moderation_client: Optional[ModerationClient] = None,
        toolkit: Optional[AudioToolkit] = None,
        encoder: Optional[TokenEncoder] = None,
        rate_table: Optional[RateTable] = None,
        factory: Optional[ProviderFactory] = None,
    ) -> None:
        self.config = config or get_config()
        builds_clients = (
            transcription_client is None
            or completion_client is None
            or (moderation_client is None and not self.config.disable_moderation)
        )
        # Fail here with a ConfigurationError rather than inside a run
        if builds_clients:
            self.config.validate()
        else:
            self.config.validate_settings()

        self.factory = factory or ProviderFactory()
        self.transcription_client = transcription_client or self.factory.create_transcription_client(
            self.config
        )
        self.completion_client = completion_client or self.factory.create_completion_client(self.config)
        if moderation_client is None and not self.config.disable_moderation:
            moderation_client = self.factory.create_moderation_client(self.config)
        self.moderation_client = None if self.config.disable_moderation else moderation_client
        self.toolkit = toolkit or FFmpegAudioToolkit()
        self.encoder = encoder or TiktokenEncoder(self.config.tokenizer_encoding)
        self.rate_table = rate_table or RateTable()
        self.retry_config = RetryConfig.from_config(self.config)

    def _retry(self) -> RetryExecutor:
        return RetryExecutor(self.retry_config)

    @contextmanager
    def _stage(self, context: PipelineContext, name: str) -> Generator[None, None, None]:
        start = time.time()
        logger.info(f"[{context.run_id}] Stage '{name}' starting")
        try:
            yield
        finally:
            elapsed = time.time() - start
            context.stage_durations[name] = elapsed
            logger.info(f"[{context.run_id}] Stage '{name}' finished ({elapsed:.2f}s)")

    async def run(self, audio_path: Path | str, request: Optional[SummaryRequest] = None) -> PipelineResult:
        """Run the whole pipeline for one audio file.

        Args:
            audio_path: Source recording
            request: Summary options; defaults to the configured ones

        Returns:
            PipelineResult for the destination document builder

        Raises:
            PipelineError: If any stage fails; no partial result is returned
        """
        config = self.config
        request = request or SummaryRequest.from_config(config)
        context = PipelineContext(config=config)
        accountant = CostAccountant(context.ledger, self.rate_table)
        logger.info(f"[{context.run_id}] Processing {audio_path}")

        # ============================================================
        # Stage 1: Validation and chunk planning
        # ============================================================
        with self._stage(context, "planning"):
            audio_file = validate_audio_file(audio_path, config.allowed_extensions, config.max_file_size)
            context.audio_file = audio_file

            duration = await self.toolkit.probe_duration(audio_file.path)
            if duration is None:
                if config.fail_on_no_duration:
                    raise DurationUnavailableError(f"Could not determine the duration of {audio_file.path.name}")
                logger.warning(
                    f"Could not determine the duration of {audio_file.path.name}; "
                    "transcription cost will be recorded as 0"
                )
            audio_file.duration_seconds = duration

            plan = plan_chunks(audio_file.size_bytes, config.max_chunk_size, duration)
            context.plan = plan
            logger.info(
                f"[{context.run_id}] {audio_file.size_bytes / (1024 * 1024):.1f}MB, "
                f"{duration if duration is not None else 'unknown'}s -> {plan.chunk_count} piece(s)"
            )

        # ============================================================
        # Stage 2: Segmentation and transcription
        # ============================================================
        with self._stage(context, "transcription"):
            with secure_temp_directory(dir=config.temp_dir) as work_dir:
                pieces = await prepare_pieces(audio_file, plan, self.toolkit, work_dir)
                transcription = TranscriptionStage(
                    self.transcription_client,
                    BoundedDispatcher(
                        config.transcription_max_concurrent, config.transcription_min_interval, "transcription"
                    ),
                    self._retry(),
                )
                units = await transcription.run(pieces)

            transcript = combine_transcript(units)
            accountant.record_transcription(
                self.transcription_client.provider_name, self.transcription_client.model, duration
            )
            if not transcript.text:
                raise TranscriptionStageError("Transcription returned no text")

        paragraphs = make_paragraphs(transcript.text)

        # ============================================================
        # Stage 3: Moderation
        # ============================================================
        if self.moderation_client is not None:
            with self._stage(context, "moderation"):
                moderation = ModerationStage(
                    self.moderation_client,
                    BoundedDispatcher(config.moderation_max_concurrent, name="moderation"),
                    self._retry(),
                )
                await moderation.run(transcript.text)

        # ============================================================
        # Stage 4: Summarization
        # ============================================================
        with self._stage(context, "summarization"):
            chunks = split_transcript(
                transcript.text,
                self.encoder,
                config.effective_summary_max_tokens,
                config.split_search_window,
            )
            summarization = SummarizationStage(
                self.completion_client,
                BoundedDispatcher(
                    config.effective_summarization_max_concurrent,
                    config.summarization_min_interval,
                    "summarization",
                ),
                self._retry(),
            )
            summary_units = await summarization.run(chunks, request)

            summaries: List[StructuredSummary] = [
                parse_structured_summary(unit.content, unit.index) for unit in summary_units
            ]
            document = merge_summaries(summaries, summary_units, request.sections)

            context.completion_usage = sum((unit.usage for unit in summary_units), TokenUsage())
            accountant.record_completion(
                "summarization",
                self.completion_client.provider_name,
                summary_units[0].model,
                context.completion_usage,
            )

        # ============================================================
        # Stage 5: Language detection and translation
        # ============================================================
        translated_paragraphs: Optional[List[str]] = None
        if request.summary_language and request.translate_transcript:
            with self._stage(context, "translation"):
                translation = TranslationStage(
                    self.completion_client,
                    BoundedDispatcher(config.translation_max_concurrent, name="translation"),
                    self._retry(),
                    accountant,
                    temperature=request.temperature,
                )
                detected = await translation.detect_language(paragraphs[0])
                context.transcript_language = detected.code
                if detected.code != request.summary_language.lower():
                    translated = await translation.translate(paragraphs, request.summary_language)
                    translated_paragraphs = make_paragraphs(" ".join(translated))
                else:
                    logger.info("Transcript is already in the summary language; skipping translation")

        if config.delete_source_after_run:
            remove_files([audio_file.path])

        logger.info(
            f"[{context.run_id}] Finished: {len(chunks)} chunk(s), "
            f"total cost ${context.ledger.total:.4f}"
        )
        return PipelineResult(
            document=document,
            ledger=context.ledger,
            transcript=transcript,
            paragraphs=paragraphs,
            chunk_count=len(chunks),
            piece_count=len(pieces),
            duration_seconds=duration,
            transcript_language=context.transcript_language,
            translated_paragraphs=translated_paragraphs,
            summary_paragraphs=make_paragraphs(document.summary) if document.summary else [],
            stage_durations=dict(context.stage_durations),
        )

    def run_sync(self, audio_path: Path | str, request: Optional[SummaryRequest] = None) -> PipelineResult:
        """Synchronous wrapper around :meth:`run`."""
        return asyncio.run(self.run(audio_path, request))
