"""Provider adapters for transcription, completion and moderation services."""

from .base import (
    CompletionClient,
    CompletionResponse,
    ModerationClient,
    ProviderError,
    TranscriptionClient,
    TranscriptionResponse,
)
from .factory import ProviderFactory

__all__ = [
    "CompletionClient",
    "CompletionResponse",
    "ModerationClient",
    "ProviderError",
    "ProviderFactory",
    "TranscriptionClient",
    "TranscriptionResponse",
]
