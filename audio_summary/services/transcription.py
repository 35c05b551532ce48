"""Transcription stage: send every audio piece to the speech-to-text service."""
from __future__ import annotations

import logging
from typing import List, Sequence

from ..errors import TranscriptionStageError
from ..models import AudioPiece, FullTranscript, TranscriptionUnit
from ..orchestration.dispatcher import BoundedDispatcher, DispatchError
from ..providers.base import TranscriptionClient
from ..utils.retry import RetryExecutor, RetryExhaustedError
from ..utils.secure_temp import remove_files

logger = logging.getLogger(__name__)

SENTENCE_TERMINATORS = (".", "!", "?")


def combine_transcript(units: Sequence[TranscriptionUnit]) -> FullTranscript:
    """Join transcription units into one transcript in index order.

    Pieces are cut on time boundaries, so a sentence often spans two of
    them. When a piece ends with a terminator and the next starts with a
    lowercase letter the terminator is dropped.
    """
    ordered = sorted(units, key=lambda unit: unit.index)
    texts = [unit.text.strip() for unit in ordered]

    for i in range(len(texts) - 1):
        current, following = texts[i], texts[i + 1]
        if current.endswith(SENTENCE_TERMINATORS) and following[:1].islower():
            texts[i] = current[:-1]

    text = " ".join(t for t in texts if t).strip()
    return FullTranscript(text=text, unit_count=len(ordered))


class TranscriptionStage:
    """Transcribes audio pieces concurrently with retries."""

    def __init__(
        self,
        client: TranscriptionClient,
        dispatcher: BoundedDispatcher,
        retry: RetryExecutor,
    ) -> None:
        self.client = client
        self.dispatcher = dispatcher
        self.retry = retry

    async def _transcribe_piece(self, piece: AudioPiece) -> TranscriptionUnit:
        label = f"transcription of piece {piece.index} ({piece.path.name})"
        response = await self.retry.run(lambda: self.client.transcribe(piece.path), label=label)

        rate_limits = response.usage_meta.get("rate_limits")
        if rate_limits:
            logger.debug(f"Rate limits after piece {piece.index}: {rate_limits}")
        logger.info(f"Transcribed piece {piece.index} ({len(response.text)} characters)")
        return TranscriptionUnit(index=piece.index, text=response.text, usage_meta=response.usage_meta)

    async def run(self, pieces: List[AudioPiece]) -> List[TranscriptionUnit]:
        """Transcribe every piece, returning units aligned with ``pieces``.

        Temporary piece files are removed before returning, whether the
        stage succeeded or not.

        Raises:
            TranscriptionStageError: If any piece fails after retries
        """
        logger.info(
            f"Transcribing {len(pieces)} piece(s) with {self.client.provider_name} {self.client.model}"
        )
        try:
            return await self.dispatcher.map(pieces, self._transcribe_piece, label="transcription")
        except DispatchError as e:
            cause = e.cause
            if isinstance(cause, RetryExhaustedError):
                cause = cause.last_exception
            raise TranscriptionStageError(
                f"Transcription failed for piece {e.index}: {cause}", index=e.index
            ) from e.cause
        finally:
            removed = remove_files(piece.path for piece in pieces if piece.temporary)
            if removed:
                logger.debug(f"Removed {removed} temporary audio piece(s)")
