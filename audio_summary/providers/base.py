"""Abstract interfaces for the external AI services the pipeline calls."""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from ..models import TokenUsage

# Response headers worth logging from transcription calls.
RATE_LIMIT_HEADERS = (
    "x-ratelimit-limit-requests",
    "x-ratelimit-remaining-requests",
    "x-ratelimit-reset-requests",
    "x-ratelimit-limit-tokens",
    "x-ratelimit-remaining-tokens",
    "x-ratelimit-reset-tokens",
)


class ProviderError(Exception):
    """Normalized failure raised by every provider adapter.

    Attributes:
        provider: Service that failed
        status_code: HTTP status returned by the service, if any
        connection_error: True when the request never got a response
    """

    def __init__(
        self,
        message: str,
        provider: str = "",
        status_code: Optional[int] = None,
        connection_error: bool = False,
    ) -> None:
        self.provider = provider
        self.status_code = status_code
        self.connection_error = connection_error
        super().__init__(message)


@dataclass
class TranscriptionResponse:
    """Text returned for one audio piece plus provider metadata."""

    text: str
    usage_meta: Dict[str, Any] = field(default_factory=dict)


@dataclass
class CompletionResponse:
    """Normalized chat completion."""

    content: str
    usage: TokenUsage
    model: str


class TranscriptionClient(ABC):
    """Speech-to-text service."""

    provider_name = "unknown"

    def __init__(self, model: str) -> None:
        self.model = model

    @abstractmethod
    async def transcribe(self, path: Path) -> TranscriptionResponse:
        """Transcribe one audio file.

        Raises:
            ProviderError: If the service call fails
        """


class CompletionClient(ABC):
    """Text-generation service."""

    provider_name = "unknown"

    def __init__(self, model: str) -> None:
        self.model = model

    @abstractmethod
    async def complete(
        self,
        prompt: str,
        system_message: str,
        temperature: float = 0.2,
        model: Optional[str] = None,
        json_mode: bool = True,
    ) -> CompletionResponse:
        """Send one chat completion request.

        Raises:
            ProviderError: If the service call fails
        """


class ModerationClient(ABC):
    """Content moderation service."""

    provider_name = "unknown"

    @abstractmethod
    async def moderate(self, text: str) -> bool:
        """Return True when ``text`` is flagged.

        Raises:
            ProviderError: If the service call fails
        """


def extract_rate_limit_headers(headers: Any) -> Dict[str, str]:
    """Pick the rate-limit headers out of a response header mapping."""
    if not headers:
        return {}
    return {name: headers.get(name) for name in RATE_LIMIT_HEADERS if headers.get(name) is not None}
