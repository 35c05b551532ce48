"""Deepgram prerecorded transcription adapter."""
from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Optional

import httpx
from deepgram import DeepgramApiError, DeepgramClient, DeepgramClientOptions, PrerecordedOptions

from .base import ProviderError, TranscriptionClient, TranscriptionResponse

logger = logging.getLogger(__name__)

PROVIDER = "deepgram"

_MIMETYPES = {
    ".mp3": "audio/mp3",
    ".mpga": "audio/mpeg",
    ".mpeg": "audio/mpeg",
    ".wav": "audio/wav",
    ".m4a": "audio/mp4",
    ".mp4": "audio/mp4",
    ".aac": "audio/aac",
    ".flac": "audio/flac",
    ".ogg": "audio/ogg",
    ".oga": "audio/ogg",
    ".webm": "audio/webm",
}


def detect_mimetype(path: Path) -> str:
    return _MIMETYPES.get(path.suffix.lower(), "audio/mp3")


def _status_code(e: DeepgramApiError) -> Optional[int]:
    try:
        return int(getattr(e, "status", ""))
    except (TypeError, ValueError):
        return None


class DeepgramTranscriber(TranscriptionClient):
    """Speech-to-text through Deepgram's prerecorded API.

    The SDK's prerecorded client is synchronous, so each request runs in a
    worker thread to keep the event loop free for the other pieces.
    """

    provider_name = PROVIDER

    def __init__(
        self,
        api_key: str,
        model: str = "nova-2",
        language: Optional[str] = None,
        timeout: int = 600,
        client: Optional[DeepgramClient] = None,
    ) -> None:
        super().__init__(model)
        self.language = language
        # 10 minute timeout (large files can take time)
        self._client = client or DeepgramClient(
            api_key, config=DeepgramClientOptions(options={"timeout": timeout})
        )

    def _build_options(self) -> PrerecordedOptions:
        options = {"model": self.model, "smart_format": True, "punctuate": True}
        if self.language:
            options["language"] = self.language
        else:
            options["detect_language"] = True
        return PrerecordedOptions(**options)

    def _submit(self, path: Path) -> Any:
        with path.open("rb") as audio_source:
            return self._client.listen.prerecorded.v("1").transcribe_file(
                source={"buffer": audio_source, "mimetype": detect_mimetype(path)},
                options=self._build_options(),
            )

    async def transcribe(self, path: Path) -> TranscriptionResponse:
        logger.debug(f"Sending {path.name} to Deepgram {self.model}")
        try:
            response = await asyncio.to_thread(self._submit, path)
        except DeepgramApiError as e:
            raise ProviderError(f"Deepgram API error: {e}", PROVIDER, _status_code(e)) from e
        except (httpx.TransportError, ConnectionError, TimeoutError) as e:
            raise ProviderError(
                f"Deepgram connection error: {e}", PROVIDER, connection_error=True
            ) from e

        channel = response.results.channels[0]
        transcript = channel.alternatives[0].transcript
        usage_meta = {"duration": getattr(response.metadata, "duration", None)}
        detected = getattr(channel, "detected_language", None)
        if detected:
            usage_meta["detected_language"] = detected
        return TranscriptionResponse(text=transcript, usage_meta=usage_meta)
