"""End-to-end pipeline integration tests.

This module tests:
- A 50MB, one hour recording split into three pieces and two chunks
- Cost ledger contents for a full run
- Moderation, repair and transcription failures aborting the run
- Language detection and transcript translation
- Temporary piece and source file cleanup
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import List

import pytest

from audio_summary import PipelineError, SummaryPipeline, SummaryRequest
from audio_summary.errors import (
    DurationUnavailableError,
    ModerationFlaggedError,
    StructuredOutputError,
    TranscriptionStageError,
)
from audio_summary.providers.base import ProviderError, TranscriptionResponse
from audio_summary.services.prompts import LANGUAGE_DETECTION_MESSAGE

SENTENCE = "Word one two three four five six seven eight nine."
PIECE_TEXT = " ".join([SENTENCE] * 150)
PIECE_NAMES = ["chunk-000.mp3", "chunk-001.mp3", "chunk-002.mp3"]

SUMMARY_JSON = json.dumps(
    {
        "title": "Counting practice",
        "summary": "The speaker counts to nine.",
        "main_points": ["Counting"],
        "action_items": ["Practice counting"],
        "related_topics": ["Numbers", "Counting"],
    }
)


def _summary_responder(prompt: str, system_message: str) -> str:
    if system_message == LANGUAGE_DETECTION_MESSAGE:
        return '{"label": "English", "value": "en"}'
    if system_message.startswith("Translate"):
        return "Palabra uno dos tres."
    return SUMMARY_JSON


@pytest.fixture
def large_recording(tmp_path: Path) -> Path:
    """A sparse 50MB file with an audio extension."""
    path = tmp_path / "lecture.mp3"
    with open(path, "wb") as f:
        f.truncate(50 * 1024 * 1024)
    return path


@pytest.fixture
def small_recording(tmp_path: Path) -> Path:
    path = tmp_path / "note.mp3"
    path.write_bytes(b"\x00" * 1024)
    return path


@pytest.fixture
def build_pipeline(
    pipeline_config, make_transcription_client, make_completion_client, make_moderation_client, make_toolkit, word_encoder
):
    """Assemble a pipeline from fakes; keyword arguments replace individual collaborators."""

    def _build(**overrides):
        collaborators = {
            "transcription_client": make_transcription_client({name: PIECE_TEXT for name in PIECE_NAMES}),
            "completion_client": make_completion_client(_summary_responder),
            "moderation_client": make_moderation_client(),
            "toolkit": make_toolkit(duration=3600),
            "encoder": word_encoder,
        }
        collaborators.update(overrides)
        return SummaryPipeline(config=pipeline_config, **collaborators), collaborators

    return _build


class TestFullRun:
    """Tests for a successful run over a large recording."""

    @pytest.mark.asyncio
    async def test_large_recording(self, build_pipeline, large_recording, pipeline_config):
        """Test that 50MB/24MB/3600s gives 3 pieces of 1200s, 2 chunks and one document."""
        pipeline, fakes = build_pipeline()

        result = await pipeline.run(large_recording)

        toolkit = fakes["toolkit"]
        assert toolkit.segment_calls[0]["segment_seconds"] == 1200
        assert result.piece_count == 3
        assert [path.name for path in fakes["transcription_client"].calls] == PIECE_NAMES
        assert result.chunk_count == 2
        assert len(fakes["completion_client"].calls) == 2
        assert result.duration_seconds == 3600

        document = result.document
        assert document.title == "Counting practice"
        assert document.summary == "The speaker counts to nine. The speaker counts to nine."
        assert document.main_points == ["Counting", "Counting"]
        assert document.related_topics == ["counting", "numbers"]
        assert document.tokens == 2400

        assert result.transcript.text == " ".join([PIECE_TEXT] * 3)
        assert result.transcript.unit_count == 3
        assert result.paragraphs[0] == " ".join([SENTENCE] * 4)
        assert result.summary_paragraphs == ["The speaker counts to nine. The speaker counts to nine."]

    @pytest.mark.asyncio
    async def test_cost_ledger(self, build_pipeline, large_recording):
        pipeline, _ = build_pipeline()

        result = await pipeline.run(large_recording)

        ledger = result.ledger
        assert [entry.stage for entry in ledger.entries] == ["transcription", "summarization"]
        transcription, summarization = ledger.entries
        assert transcription.cost == pytest.approx(0.36)
        assert summarization.cost == pytest.approx(0.00054)
        assert summarization.usage_metric == 2400
        assert all(entry.cost > 0 for entry in ledger.entries)
        assert ledger.total == pytest.approx(transcription.cost + summarization.cost)
        assert result.to_dict()["cost"]["total"] == pytest.approx(0.36054)

    @pytest.mark.asyncio
    async def test_stage_timings_and_cleanup(self, build_pipeline, large_recording, pipeline_config):
        pipeline, _ = build_pipeline()

        result = await pipeline.run(large_recording)

        assert set(result.stage_durations) == {"planning", "transcription", "moderation", "summarization"}
        assert large_recording.exists()
        assert list(Path(pipeline_config.temp_dir).iterdir()) == []

    @pytest.mark.asyncio
    async def test_source_deleted_when_configured(self, build_pipeline, large_recording, pipeline_config):
        pipeline_config.delete_source_after_run = True
        pipeline, _ = build_pipeline()

        await pipeline.run(large_recording)

        assert not large_recording.exists()

    @pytest.mark.asyncio
    async def test_small_recording_sent_whole(self, build_pipeline, small_recording, make_transcription_client):
        pipeline, fakes = build_pipeline(transcription_client=make_transcription_client({"note.mp3": SENTENCE}))

        result = await pipeline.run(small_recording)

        assert result.piece_count == 1
        assert fakes["toolkit"].segment_calls == []
        assert fakes["transcription_client"].calls == [small_recording]
        assert small_recording.exists()

    @pytest.mark.asyncio
    async def test_no_sections_requests_title_only(self, build_pipeline, large_recording):
        pipeline, fakes = build_pipeline()

        result = await pipeline.run(large_recording, SummaryRequest(sections=[]))

        assert len(fakes["completion_client"].calls) == 1
        assert result.document.title == "Counting practice"
        assert result.document.related_topics is None

    def test_run_sync(self, build_pipeline, small_recording, make_transcription_client):
        pipeline, _ = build_pipeline(transcription_client=make_transcription_client({"note.mp3": SENTENCE}))

        result = pipeline.run_sync(small_recording)

        assert result.document.title == "Counting practice"


class TestUnknownDuration:
    """Tests for recordings whose duration cannot be probed."""

    @pytest.mark.asyncio
    async def test_single_piece_costs_nothing(
        self, build_pipeline, small_recording, make_toolkit, make_transcription_client
    ):
        pipeline, _ = build_pipeline(
            toolkit=make_toolkit(duration=None),
            transcription_client=make_transcription_client({"note.mp3": SENTENCE}),
        )

        result = await pipeline.run(small_recording)

        transcription = result.ledger.by_stage("transcription")[0]
        assert transcription.cost == 0.0
        assert transcription.note == "duration unknown"

    @pytest.mark.asyncio
    async def test_required_duration(self, build_pipeline, small_recording, make_toolkit, pipeline_config):
        pipeline_config.fail_on_no_duration = True
        pipeline, fakes = build_pipeline(toolkit=make_toolkit(duration=None))

        with pytest.raises(DurationUnavailableError):
            await pipeline.run(small_recording)

        assert fakes["transcription_client"].calls == []

    @pytest.mark.asyncio
    async def test_large_file_cannot_be_split(self, build_pipeline, large_recording, make_toolkit):
        pipeline, _ = build_pipeline(toolkit=make_toolkit(duration=None))

        with pytest.raises(PipelineError) as exc_info:
            await pipeline.run(large_recording)

        assert exc_info.value.stage == "segmentation"


class TestFailures:
    """Tests for stage failures aborting the run."""

    @pytest.mark.asyncio
    async def test_moderation_flag_stops_summarization(self, build_pipeline, large_recording, make_moderation_client):
        pipeline, fakes = build_pipeline(moderation_client=make_moderation_client(flag_word="seven"))

        with pytest.raises(ModerationFlaggedError) as exc_info:
            await pipeline.run(large_recording)

        assert exc_info.value.index == 0
        assert fakes["completion_client"].calls == []
        assert large_recording.exists()

    @pytest.mark.asyncio
    async def test_unparseable_summary(self, build_pipeline, large_recording, make_completion_client):
        pipeline, _ = build_pipeline(
            completion_client=make_completion_client(lambda prompt, system: "Sorry, no summary today")
        )

        with pytest.raises(StructuredOutputError) as exc_info:
            await pipeline.run(large_recording)

        assert exc_info.value.index == 0
        assert exc_info.value.raw_content == "Sorry, no summary today"

    @pytest.mark.asyncio
    async def test_transient_transcription_error_recovered(
        self, build_pipeline, large_recording, make_transcription_client
    ):
        """Test that a 503 on one piece is retried and the run still succeeds."""
        client = make_transcription_client({name: PIECE_TEXT for name in PIECE_NAMES})
        failures: List[str] = []
        original = client.transcribe

        async def flaky(path: Path) -> TranscriptionResponse:
            if path.name == "chunk-001.mp3" and not failures:
                failures.append(path.name)
                raise ProviderError("service unavailable", provider="openai", status_code=503)
            return await original(path)

        client.transcribe = flaky
        pipeline, _ = build_pipeline(transcription_client=client)

        result = await pipeline.run(large_recording)

        assert failures == ["chunk-001.mp3"]
        assert result.piece_count == 3

    @pytest.mark.asyncio
    async def test_fatal_transcription_error_cleans_up(
        self, build_pipeline, large_recording, make_transcription_client, pipeline_config
    ):
        client = make_transcription_client({name: PIECE_TEXT for name in PIECE_NAMES})

        async def rejected(path: Path) -> TranscriptionResponse:
            raise ProviderError("file is not valid audio", provider="openai", status_code=400)

        client.transcribe = rejected
        pipeline, _ = build_pipeline(transcription_client=client)

        with pytest.raises(TranscriptionStageError) as exc_info:
            await pipeline.run(large_recording)

        assert exc_info.value.index == 0
        assert list(Path(pipeline_config.temp_dir).iterdir()) == []

    @pytest.mark.asyncio
    async def test_empty_transcript(self, build_pipeline, small_recording, make_transcription_client):
        pipeline, _ = build_pipeline(transcription_client=make_transcription_client({"note.mp3": "   "}))

        with pytest.raises(TranscriptionStageError, match="no text"):
            await pipeline.run(small_recording)


class TestTranslation:
    """Tests for language detection and transcript translation."""

    @pytest.mark.asyncio
    async def test_transcript_translated(self, build_pipeline, large_recording):
        pipeline, fakes = build_pipeline()
        request = SummaryRequest(sections=["summary"], summary_language="es", translate_transcript=True)

        result = await pipeline.run(large_recording, request)

        assert result.transcript_language == "en"
        assert result.translated_paragraphs
        assert result.translated_paragraphs[0].startswith("Palabra uno dos tres.")
        assert [entry.stage for entry in result.ledger.entries] == [
            "transcription",
            "summarization",
            "language_detection",
            "translation",
        ]
        assert "translation" in result.stage_durations
        summary_system = fakes["completion_client"].calls[0]["system_message"]
        assert "Spanish" in summary_system

    @pytest.mark.asyncio
    async def test_same_language_skips_translation(self, build_pipeline, large_recording):
        pipeline, _ = build_pipeline()
        request = SummaryRequest(sections=["summary"], summary_language="en", translate_transcript=True)

        result = await pipeline.run(large_recording, request)

        assert result.transcript_language == "en"
        assert result.translated_paragraphs is None
        assert result.ledger.by_stage("translation") == []
