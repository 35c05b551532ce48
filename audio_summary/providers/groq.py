"""Groq transcription and chat adapters.

Groq serves an OpenAI-compatible API, so both adapters are the OpenAI ones
pointed at Groq's base URL and billed under the ``groq`` provider name.
"""
from __future__ import annotations

from typing import Optional

from openai import AsyncOpenAI

from .openai import OpenAIChat, OpenAITranscriber

PROVIDER = "groq"
GROQ_BASE_URL = "https://api.groq.com/openai/v1"


def _groq_client(api_key: str, base_url: Optional[str]) -> AsyncOpenAI:
    return AsyncOpenAI(api_key=api_key, base_url=base_url or GROQ_BASE_URL, max_retries=0)


class GroqTranscriber(OpenAITranscriber):
    """Speech-to-text through Groq's hosted Whisper models."""

    provider_name = PROVIDER

    def __init__(
        self,
        api_key: str,
        model: str = "whisper-large-v3-turbo",
        prompt: Optional[str] = None,
        base_url: Optional[str] = None,
        client: Optional[AsyncOpenAI] = None,
    ) -> None:
        super().__init__(api_key, model=model, prompt=prompt, client=client or _groq_client(api_key, base_url))


class GroqChat(OpenAIChat):
    """Chat completions through Groq's hosted open models."""

    provider_name = PROVIDER

    def __init__(
        self,
        api_key: str,
        model: str = "llama-3.1-8b-instant",
        base_url: Optional[str] = None,
        client: Optional[AsyncOpenAI] = None,
    ) -> None:
        super().__init__(api_key, model=model, client=client or _groq_client(api_key, base_url))
