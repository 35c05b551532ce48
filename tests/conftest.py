"""Global pytest fixtures and configuration.

This module provides shared fixtures for all tests including:
- A deterministic word-level token encoder
- Fake transcription, completion and moderation clients
- A fake audio toolkit that writes placeholder segment files
- A pipeline configuration that never reads API keys or sleeps
"""
from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

import pytest

from audio_summary.config import Config
from audio_summary.models import TokenUsage
from audio_summary.providers.base import (
    CompletionClient,
    CompletionResponse,
    ModerationClient,
    TranscriptionClient,
    TranscriptionResponse,
)
from audio_summary.services.audio_tools import AudioToolkit
from audio_summary.utils.retry import RetryConfig


class WordEncoder:
    """Encodes each word or punctuation mark, with its leading whitespace, as one token."""

    _pattern = re.compile(r"\s*\w+|\s*[^\w\s]|\s+$")

    def __init__(self) -> None:
        self._ids: Dict[str, int] = {}
        self._pieces: List[str] = []

    def encode(self, text: str) -> List[int]:
        tokens = []
        for piece in self._pattern.findall(text):
            if piece not in self._ids:
                self._ids[piece] = len(self._pieces)
                self._pieces.append(piece)
            tokens.append(self._ids[piece])
        return tokens

    def decode(self, tokens: Sequence[int]) -> str:
        return "".join(self._pieces[token] for token in tokens)

    def decode_bytes(self, tokens: Sequence[int]) -> bytes:
        return self.decode(tokens).encode("utf-8")


class FakeTranscriptionClient(TranscriptionClient):
    """Returns canned text per audio file name and records every call."""

    provider_name = "openai"

    def __init__(self, texts: Dict[str, str], model: str = "whisper-1") -> None:
        super().__init__(model)
        self.texts = texts
        self.calls: List[Path] = []

    async def transcribe(self, path: Path) -> TranscriptionResponse:
        self.calls.append(path)
        return TranscriptionResponse(
            text=self.texts[path.name],
            usage_meta={"rate_limits": {"x-ratelimit-remaining-requests": "49"}},
        )


class FakeCompletionClient(CompletionClient):
    """Answers every prompt through ``responder`` with fixed token usage."""

    provider_name = "openai"

    def __init__(
        self,
        responder: Optional[Callable[[str, str], str]] = None,
        model: str = "gpt-4o-mini",
        usage: Optional[TokenUsage] = None,
    ) -> None:
        super().__init__(model)
        self.responder = responder or (lambda prompt, system: json.dumps({"title": "Untitled"}))
        self.usage = usage or TokenUsage(prompt_tokens=1000, completion_tokens=200)
        self.calls: List[Dict[str, object]] = []

    async def complete(
        self,
        prompt: str,
        system_message: str,
        temperature: float = 0.2,
        model: Optional[str] = None,
        json_mode: bool = True,
    ) -> CompletionResponse:
        self.calls.append(
            {"prompt": prompt, "system_message": system_message, "temperature": temperature, "json_mode": json_mode}
        )
        return CompletionResponse(
            content=self.responder(prompt, system_message), usage=self.usage, model=model or self.model
        )


class FakeModerationClient(ModerationClient):
    """Flags any text containing ``flag_word``."""

    provider_name = "openai"

    def __init__(self, flag_word: Optional[str] = None) -> None:
        self.flag_word = flag_word
        self.calls: List[str] = []

    async def moderate(self, text: str) -> bool:
        self.calls.append(text)
        return bool(self.flag_word and self.flag_word in text)


class FakeToolkit(AudioToolkit):
    """Reports a fixed duration and writes empty segment files."""

    def __init__(self, duration: Optional[int], piece_count: Optional[int] = None) -> None:
        self.duration = duration
        self.piece_count = piece_count
        self.segment_calls: List[Dict[str, object]] = []

    async def probe_duration(self, path: Path) -> Optional[int]:
        return self.duration

    async def segment(self, path: Path, segment_seconds: int, out_dir: Path) -> List[Path]:
        self.segment_calls.append({"path": path, "segment_seconds": segment_seconds, "out_dir": out_dir})
        count = self.piece_count or -(-self.duration // segment_seconds)
        pieces = []
        for i in range(count):
            piece = out_dir / f"chunk-{i:03d}{path.suffix}"
            piece.write_bytes(b"\x00")
            pieces.append(piece)
        return pieces


@pytest.fixture
def word_encoder() -> WordEncoder:
    """Provide a fresh word-level encoder."""
    return WordEncoder()


@pytest.fixture
def fast_retry_config() -> RetryConfig:
    """Retry settings with no backoff so retry tests run instantly."""
    return RetryConfig(max_attempts=3, base_delay=0.0, max_delay=0.0, jitter=False)


@pytest.fixture
def make_transcription_client() -> Callable[..., FakeTranscriptionClient]:
    """Factory for fake transcription clients."""
    return FakeTranscriptionClient


@pytest.fixture
def make_completion_client() -> Callable[..., FakeCompletionClient]:
    """Factory for fake completion clients."""
    return FakeCompletionClient


@pytest.fixture
def make_moderation_client() -> Callable[..., FakeModerationClient]:
    """Factory for fake moderation clients."""
    return FakeModerationClient


@pytest.fixture
def make_toolkit() -> Callable[..., FakeToolkit]:
    """Factory for fake audio toolkits."""
    return FakeToolkit


@pytest.fixture
def pipeline_config(tmp_path: Path) -> Config:
    """Configuration with explicit values so the environment cannot leak in.

    Args:
        tmp_path: pytest temporary directory used for work files

    Returns:
        Config suitable for running the pipeline against fakes
    """
    return Config(
        temp_dir=tmp_path / "work",
        max_file_size=200 * 1024 * 1024,
        allowed_extensions=[".mp3", ".m4a", ".wav"],
        max_chunk_size_mb=24,
        fail_on_no_duration=False,
        delete_source_after_run=False,
        rich_output=False,
        transcription_service="openai",
        transcription_model="whisper-1",
        completion_service="openai",
        completion_model="gpt-4o-mini",
        transcription_prompt=None,
        groq_base_url=None,
        OPENAI_API_KEY="sk-test-key-0000000000",
        ANTHROPIC_API_KEY=None,
        DEEPGRAM_API_KEY=None,
        GROQ_API_KEY=None,
        transcription_max_concurrent=30,
        transcription_min_interval=0.0,
        summarization_max_concurrent=35,
        summarization_min_interval=0.0,
        moderation_max_concurrent=35,
        translation_max_concurrent=35,
        max_retries=3,
        retry_delay=0.0,
        max_retry_delay=0.0,
        retry_exponential_base=2.0,
        retry_jitter=False,
        summary_max_tokens=2750,
        split_search_window=100,
        temperature=0.2,
        summary_sections=["summary", "main_points", "action_items", "related_topics"],
        verbosity="medium",
        summary_language=None,
        translate_transcript=False,
        disable_moderation=False,
    )
