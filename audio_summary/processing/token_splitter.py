"""Split a transcript into token-bounded chunks on sentence boundaries."""
from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Union

from ..models import TranscriptChunk
from .tokenizer import TokenEncoder

logger = logging.getLogger(__name__)

TERMINATOR_CHARS = frozenset(".!?\u3002\uff01\uff1f")
DEFAULT_SEARCH_WINDOW = 100


def is_terminator(token: int, encoder: TokenEncoder) -> bool:
    """True if the token decodes to sentence-ending punctuation only."""
    text = encoder.decode([token]).strip()
    return bool(text) and all(char in TERMINATOR_CHARS for char in text)


def find_longest_gap(tokens: Sequence[int], encoder: TokenEncoder) -> int:
    """Longest run of tokens between sentence terminators.

    The run before the first terminator and after the last one count too.

    Returns:
        Gap length in tokens, or -1 if the transcript has no terminator
    """
    positions = [i for i, token in enumerate(tokens) if is_terminator(token, encoder)]
    if not positions:
        return -1

    longest = positions[0]
    for previous, current in zip(positions, positions[1:]):
        longest = max(longest, current - previous - 1)
    return max(longest, len(tokens) - positions[-1] - 1)


def _choose_cut(
    tokens: Sequence[int], encoder: TokenEncoder, offset: int, naive: int, window: int
) -> int:
    """Move a naive cut point to the nearest terminator within ``window`` tokens.

    A cut always falls just after the terminator. Equal distances favour the
    forward candidate. Without a terminator in range the naive cut stands.
    """
    forward_cut: Optional[int] = None
    for position in range(naive, min(len(tokens), naive + window)):
        if is_terminator(tokens[position], encoder):
            forward_cut = position + 1
            break

    backward_cut: Optional[int] = None
    for position in range(naive - 1, max(offset, naive - window) - 1, -1):
        if is_terminator(tokens[position], encoder):
            backward_cut = position + 1
            break

    if forward_cut is None and backward_cut is None:
        return naive
    if backward_cut is None:
        return forward_cut
    if forward_cut is None:
        return backward_cut
    if forward_cut - naive <= naive - backward_cut:
        return forward_cut
    return backward_cut


def _decodes_cleanly(tokens: Sequence[int], encoder: TokenEncoder) -> bool:
    try:
        encoder.decode_bytes(tokens).decode("utf-8")
    except UnicodeDecodeError:
        return False
    return True


def _align_to_character(tokens: Sequence[int], encoder: TokenEncoder, offset: int, cut: int) -> int:
    """Move a cut off any multi-byte character split between two tokens.

    Byte-level encoders can spread one character over several tokens.
    The cut steps back to the nearest point where the chunk decodes on
    its own, or forward when nothing before it does.
    """
    for candidate in range(cut, offset, -1):
        if _decodes_cleanly(tokens[offset:candidate], encoder):
            return candidate
    for candidate in range(cut + 1, len(tokens)):
        if _decodes_cleanly(tokens[offset:candidate], encoder):
            return candidate
    return len(tokens)


def split_transcript(
    transcript: Union[str, Sequence[int]],
    encoder: TokenEncoder,
    max_tokens: int,
    window: int = DEFAULT_SEARCH_WINDOW,
) -> List[TranscriptChunk]:
    """Split a transcript into chunks of roughly ``max_tokens`` tokens.

    Each cut is moved to the closest sentence terminator found within
    ``window`` tokens either side of the naive cut, so no chunk exceeds
    ``max_tokens + window`` tokens.

    Args:
        transcript: Transcript text, or its token ids
        encoder: Encoder matching the completion model
        max_tokens: Target chunk size in tokens
        window: How far to look for a terminator around each cut

    Returns:
        Chunks in order; their texts concatenate back to the transcript
    """
    if max_tokens < 1:
        raise ValueError("max_tokens must be at least 1")
    if window < 0:
        raise ValueError("window must be non-negative")

    tokens = encoder.encode(transcript) if isinstance(transcript, str) else list(transcript)
    if not tokens:
        return []

    longest_gap = find_longest_gap(tokens, encoder)
    if longest_gap > max_tokens:
        logger.warning(
            f"Longest run without a sentence terminator is {longest_gap} tokens, "
            f"more than the {max_tokens} token chunk size; some chunks will end mid-sentence"
        )

    chunks: List[TranscriptChunk] = []
    offset = 0
    while offset < len(tokens):
        naive = offset + max_tokens
        if naive >= len(tokens):
            end = len(tokens)
        else:
            end = naive if longest_gap == -1 else _choose_cut(tokens, encoder, offset, naive, window)
            if end != naive:
                logger.debug(f"Moved chunk {len(chunks)} cut by {end - naive} tokens to a sentence end")
            else:
                end = _align_to_character(tokens, encoder, offset, naive)

        piece = tokens[offset:end]
        chunks.append(TranscriptChunk(index=len(chunks), text=encoder.decode(piece), token_count=len(piece)))
        offset = end

    logger.info(f"Split transcript of {len(tokens)} tokens into {len(chunks)} chunk(s)")
    return chunks
