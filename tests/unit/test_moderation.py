"""Tests for the moderation stage."""
from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from audio_summary.errors import ModerationFlaggedError, PipelineError
from audio_summary.orchestration import BoundedDispatcher
from audio_summary.providers.base import ProviderError
from audio_summary.services.moderation import ModerationStage
from audio_summary.utils.retry import RetryExecutor

TRANSCRIPT = " ".join(f"Sentence number {i}." for i in range(12))


class TestModerationStage:
    """Tests for ModerationStage.run."""

    def _stage(self, client, retry_config):
        return ModerationStage(client, BoundedDispatcher(max_concurrent=5), RetryExecutor(retry_config))

    @pytest.mark.asyncio
    async def test_clean_transcript_passes(self, make_moderation_client, fast_retry_config):
        client = make_moderation_client()

        checked = await self._stage(client, fast_retry_config).run(TRANSCRIPT)

        assert checked == 3
        assert len(client.calls) == 3

    @pytest.mark.asyncio
    async def test_flagged_paragraph_raises(self, make_moderation_client, fast_retry_config):
        client = make_moderation_client(flag_word="number 5.")

        with pytest.raises(ModerationFlaggedError) as exc_info:
            await self._stage(client, fast_retry_config).run(TRANSCRIPT)

        assert exc_info.value.index == 1
        assert exc_info.value.stage == "moderation"

    @pytest.mark.asyncio
    async def test_service_failure_is_not_a_flag(self, fast_retry_config):
        client = AsyncMock()
        client.moderate = AsyncMock(side_effect=ProviderError("forbidden", provider="openai", status_code=403))

        with pytest.raises(PipelineError) as exc_info:
            await self._stage(client, fast_retry_config).run(TRANSCRIPT)

        assert not isinstance(exc_info.value, ModerationFlaggedError)
        assert exc_info.value.stage == "moderation"
        assert "forbidden" in str(exc_info.value)
