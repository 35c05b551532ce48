"""Anthropic chat completion adapter."""
from __future__ import annotations

from typing import Optional

import anthropic
from anthropic import AsyncAnthropic

from ..models import TokenUsage
from .base import CompletionClient, CompletionResponse, ProviderError

PROVIDER = "anthropic"


def _to_provider_error(e: anthropic.AnthropicError) -> ProviderError:
    """Map an Anthropic SDK exception to a ProviderError."""
    if isinstance(e, anthropic.APIConnectionError):
        return ProviderError(f"Anthropic connection error: {e}", PROVIDER, connection_error=True)
    if isinstance(e, anthropic.APIStatusError):
        return ProviderError(
            f"Anthropic API error {e.status_code}: {e.message}", PROVIDER, e.status_code
        )
    return ProviderError(f"Anthropic error: {e}", PROVIDER)


class AnthropicChat(CompletionClient):
    """Chat completions through the Anthropic messages API.

    The messages API has no JSON mode, so ``json_mode`` is ignored and the
    repair chain handles any prose around the object. Temperature is
    clamped to the API's [0, 1] range.
    """

    provider_name = PROVIDER

    def __init__(
        self,
        api_key: str,
        model: str = "claude-3-5-haiku-latest",
        max_tokens: int = 4096,
        client: Optional[AsyncAnthropic] = None,
    ) -> None:
        super().__init__(model)
        self.max_tokens = max_tokens
        self._client = client or AsyncAnthropic(api_key=api_key, max_retries=0)

    async def complete(
        self,
        prompt: str,
        system_message: str,
        temperature: float = 0.2,
        model: Optional[str] = None,
        json_mode: bool = True,
    ) -> CompletionResponse:
        try:
            response = await self._client.messages.create(
                model=model or self.model,
                max_tokens=self.max_tokens,
                system=system_message,
                messages=[{"role": "user", "content": prompt}],
                temperature=max(0.0, min(temperature, 1.0)),
            )
        except anthropic.AnthropicError as e:
            raise _to_provider_error(e) from e

        content = "".join(block.text for block in response.content if block.type == "text")
        return CompletionResponse(
            content=content,
            usage=TokenUsage(
                prompt_tokens=response.usage.input_tokens,
                completion_tokens=response.usage.output_tokens,
            ),
            model=response.model or model or self.model,
        )
