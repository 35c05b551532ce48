"""Group transcript sentences into display-sized paragraphs."""
from __future__ import annotations

import logging
import re
from typing import List

logger = logging.getLogger(__name__)

DEFAULT_MAX_LENGTH = 1200

_SENTENCE_END = re.compile(r"(?<=[.!?])\s+")
_CJK_SENTENCE_END = re.compile(r"(?<=[\u3002\uff1f\uff01\uff1b])")
_CJK_CHAR = re.compile(r"[\u3040-\u30ff\u3400-\u4dbf\u4e00-\u9fff\uac00-\ud7af]")


def is_cjk_text(text: str, threshold: float = 0.3) -> bool:
    """True when a sizeable share of non-space characters are CJK."""
    chars = [c for c in text if not c.isspace()]
    if not chars:
        return False
    return len(_CJK_CHAR.findall(text)) / len(chars) >= threshold


def split_sentences(text: str) -> List[str]:
    pattern = _CJK_SENTENCE_END if is_cjk_text(text) else _SENTENCE_END
    return [sentence.strip() for sentence in pattern.split(text) if sentence.strip()]


def _split_long(paragraph: str, max_length: int) -> List[str]:
    """Pack words greedily into pieces of at most ``max_length`` characters."""
    pieces: List[str] = []
    current = ""
    for word in paragraph.split():
        while len(word) > max_length:
            if current:
                pieces.append(current)
                current = ""
            pieces.append(word[:max_length])
            word = word[max_length:]
        if not word:
            continue
        if not current:
            current = word
        elif len(current) + 1 + len(word) <= max_length:
            current = f"{current} {word}"
        else:
            pieces.append(current)
            current = word
    if current:
        pieces.append(current)
    return pieces


def make_paragraphs(text: str, max_length: int = DEFAULT_MAX_LENGTH) -> List[str]:
    """Split text into paragraphs of a few sentences each.

    Paragraphs hold four sentences, or three for CJK text, and any
    paragraph longer than ``max_length`` characters is re-split on word
    boundaries.
    """
    if max_length < 1:
        raise ValueError("max_length must be at least 1")

    sentences = split_sentences(text)
    if not sentences:
        return []

    cjk = is_cjk_text(text)
    per_paragraph = 3 if cjk else 4
    joiner = "" if cjk else " "
    grouped = [
        joiner.join(sentences[i : i + per_paragraph]) for i in range(0, len(sentences), per_paragraph)
    ]

    paragraphs: List[str] = []
    for paragraph in grouped:
        if len(paragraph) <= max_length:
            paragraphs.append(paragraph)
        else:
            paragraphs.extend(_split_long(paragraph, max_length))

    logger.debug(f"Built {len(paragraphs)} paragraphs from {len(sentences)} sentences")
    return paragraphs
