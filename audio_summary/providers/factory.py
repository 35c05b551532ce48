"""Build provider clients from configuration."""
from __future__ import annotations

import logging
from typing import Callable, Dict, Optional

from ..config import Config
from ..errors import ConfigurationError
from .base import CompletionClient, ModerationClient, TranscriptionClient

logger = logging.getLogger(__name__)

TranscriberBuilder = Callable[[Config], TranscriptionClient]
CompleterBuilder = Callable[[Config], CompletionClient]


def _openai_transcriber(config: Config) -> TranscriptionClient:
    from .openai import OpenAITranscriber

    return OpenAITranscriber(
        api_key=config.OPENAI_API_KEY, model=config.transcription_model, prompt=config.transcription_prompt
    )


def _groq_transcriber(config: Config) -> TranscriptionClient:
    from .groq import GroqTranscriber

    return GroqTranscriber(
        api_key=config.GROQ_API_KEY,
        model=config.transcription_model,
        prompt=config.transcription_prompt,
        base_url=config.groq_base_url,
    )


def _deepgram_transcriber(config: Config) -> TranscriptionClient:
    from .deepgram import DeepgramTranscriber

    return DeepgramTranscriber(api_key=config.DEEPGRAM_API_KEY, model=config.transcription_model)


def _openai_chat(config: Config) -> CompletionClient:
    from .openai import OpenAIChat

    return OpenAIChat(api_key=config.OPENAI_API_KEY, model=config.completion_model)


def _anthropic_chat(config: Config) -> CompletionClient:
    from .anthropic import AnthropicChat

    return AnthropicChat(api_key=config.ANTHROPIC_API_KEY, model=config.completion_model)


def _groq_chat(config: Config) -> CompletionClient:
    from .groq import GroqChat

    return GroqChat(api_key=config.GROQ_API_KEY, model=config.completion_model, base_url=config.groq_base_url)


DEFAULT_TRANSCRIBERS: Dict[str, TranscriberBuilder] = {
    "openai": _openai_transcriber,
    "groq": _groq_transcriber,
    "deepgram": _deepgram_transcriber,
}
DEFAULT_COMPLETERS: Dict[str, CompleterBuilder] = {
    "openai": _openai_chat,
    "anthropic": _anthropic_chat,
    "groq": _groq_chat,
}


class ProviderFactory:
    """Name-keyed registry of client builders.

    Each factory starts from its own copy of the built-in builders, so
    registering a service on one instance leaves every other untouched.
    """

    def __init__(
        self,
        transcribers: Optional[Dict[str, TranscriberBuilder]] = None,
        completers: Optional[Dict[str, CompleterBuilder]] = None,
    ) -> None:
        self._transcribers = dict(DEFAULT_TRANSCRIBERS if transcribers is None else transcribers)
        self._completers = dict(DEFAULT_COMPLETERS if completers is None else completers)

    def register_transcriber(self, name: str, builder: TranscriberBuilder) -> None:
        self._transcribers[name.lower()] = builder

    def register_completer(self, name: str, builder: CompleterBuilder) -> None:
        self._completers[name.lower()] = builder

    def create_transcription_client(self, config: Config) -> TranscriptionClient:
        """Create the transcription client named by ``config.transcription_service``.

        Raises:
            ConfigurationError: If the service is unknown
        """
        builder = self._transcribers.get(config.transcription_service)
        if builder is None:
            raise ConfigurationError(
                f"Unknown transcription service '{config.transcription_service}'. "
                f"Available: {', '.join(sorted(self._transcribers))}"
            )
        logger.debug(f"Creating {config.transcription_service} transcription client")
        return builder(config)

    def create_completion_client(self, config: Config) -> CompletionClient:
        """Create the completion client named by ``config.completion_service``.

        Raises:
            ConfigurationError: If the service is unknown
        """
        builder = self._completers.get(config.completion_service)
        if builder is None:
            raise ConfigurationError(
                f"Unknown completion service '{config.completion_service}'. "
                f"Available: {', '.join(sorted(self._completers))}"
            )
        logger.debug(f"Creating {config.completion_service} completion client")
        return builder(config)

    def create_moderation_client(self, config: Config) -> Optional[ModerationClient]:
        """Create the moderation client, or None when moderation is disabled."""
        if config.disable_moderation:
            return None
        from .openai import OpenAIModerator

        return OpenAIModerator(api_key=config.OPENAI_API_KEY, model=config.moderation_model)
