"""OpenAI transcription, chat completion and moderation adapters."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import openai
from openai import AsyncOpenAI

from ..models import TokenUsage
from .base import (
    CompletionClient,
    CompletionResponse,
    ModerationClient,
    ProviderError,
    TranscriptionClient,
    TranscriptionResponse,
    extract_rate_limit_headers,
)

logger = logging.getLogger(__name__)

PROVIDER = "openai"


def _to_provider_error(e: openai.OpenAIError, provider: str = PROVIDER) -> ProviderError:
    """Map an OpenAI SDK exception to a ProviderError.

    The SDK also serves OpenAI-compatible providers, so the provider name
    is passed through.
    """
    if isinstance(e, openai.APIConnectionError):
        return ProviderError(f"{provider} connection error: {e}", provider, connection_error=True)
    if isinstance(e, openai.APIStatusError):
        return ProviderError(f"{provider} API error {e.status_code}: {e.message}", provider, e.status_code)
    return ProviderError(f"{provider} error: {e}", provider)


class OpenAITranscriber(TranscriptionClient):
    """Speech-to-text through the OpenAI audio API."""

    provider_name = PROVIDER

    def __init__(
        self,
        api_key: str,
        model: str = "whisper-1",
        prompt: Optional[str] = None,
        client: Optional[AsyncOpenAI] = None,
    ) -> None:
        super().__init__(model)
        self.prompt = prompt
        # SDK retries are disabled; the pipeline's retry executor owns retries.
        self._client = client or AsyncOpenAI(api_key=api_key, max_retries=0)

    async def transcribe(self, path: Path) -> TranscriptionResponse:
        kwargs = {}
        if self.prompt:
            # Spelling hints for names and jargon
            kwargs["prompt"] = self.prompt
        try:
            with path.open("rb") as handle:
                raw = await self._client.audio.transcriptions.with_raw_response.create(
                    model=self.model, file=handle, **kwargs
                )
        except openai.OpenAIError as e:
            raise _to_provider_error(e, self.provider_name) from e

        transcription = raw.parse()
        usage_meta = {"rate_limits": extract_rate_limit_headers(raw.headers)}
        usage = getattr(transcription, "usage", None)
        if usage is not None:
            usage_meta["usage"] = usage.model_dump() if hasattr(usage, "model_dump") else usage
        return TranscriptionResponse(text=transcription.text or "", usage_meta=usage_meta)


class OpenAIChat(CompletionClient):
    """Chat completions through the OpenAI API."""

    provider_name = PROVIDER

    def __init__(self, api_key: str, model: str = "gpt-4o-mini", client: Optional[AsyncOpenAI] = None) -> None:
        super().__init__(model)
        self._client = client or AsyncOpenAI(api_key=api_key, max_retries=0)

    async def complete(
        self,
        prompt: str,
        system_message: str,
        temperature: float = 0.2,
        model: Optional[str] = None,
        json_mode: bool = True,
    ) -> CompletionResponse:
        kwargs = {}
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}
        try:
            response = await self._client.chat.completions.create(
                model=model or self.model,
                messages=[
                    {"role": "system", "content": system_message},
                    {"role": "user", "content": prompt},
                ],
                temperature=temperature,
                **kwargs,
            )
        except openai.OpenAIError as e:
            raise _to_provider_error(e, self.provider_name) from e

        usage = TokenUsage()
        if response.usage is not None:
            usage = TokenUsage(
                prompt_tokens=response.usage.prompt_tokens,
                completion_tokens=response.usage.completion_tokens,
            )
        return CompletionResponse(
            content=response.choices[0].message.content or "",
            usage=usage,
            model=response.model or model or self.model,
        )


class OpenAIModerator(ModerationClient):
    """Content moderation through the OpenAI moderation endpoint."""

    provider_name = PROVIDER

    def __init__(
        self, api_key: str, model: str = "omni-moderation-latest", client: Optional[AsyncOpenAI] = None
    ) -> None:
        self.model = model
        self._client = client or AsyncOpenAI(api_key=api_key, max_retries=0)

    async def moderate(self, text: str) -> bool:
        try:
            response = await self._client.moderations.create(model=self.model, input=text)
        except openai.OpenAIError as e:
            raise _to_provider_error(e, self.provider_name) from e

        flagged = any(result.flagged for result in response.results)
        if flagged:
            categories = [
                name
                for result in response.results
                for name, hit in result.categories.model_dump().items()
                if hit
            ]
            logger.warning(f"Moderation flagged content in categories: {', '.join(categories)}")
        return flagged
