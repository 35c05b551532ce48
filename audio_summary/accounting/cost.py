"""Cost accounting for transcription and completion calls."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Mapping, Optional, TypeVar

from ..models import CostEntry, CostLedger, TokenUsage

logger = logging.getLogger(__name__)

V = TypeVar("V")


@dataclass(frozen=True)
class TextRate:
    """US dollars per 1,000 prompt and completion tokens."""

    prompt: float
    completion: float


# US dollars per minute of audio.
DEFAULT_AUDIO_RATES: Dict[str, Dict[str, float]] = {
    "openai": {
        "whisper-1": 0.006,
        "gpt-4o-transcribe": 0.006,
        "gpt-4o-mini-transcribe": 0.003,
    },
    "deepgram": {
        "nova-2": 0.0043,
        "nova-3": 0.0043,
    },
    "groq": {
        "whisper-large-v3": 0.00185,
        "whisper-large-v3-turbo": 0.000667,
        "distil-whisper-large-v3-en": 0.000333,
    },
}

DEFAULT_TEXT_RATES: Dict[str, Dict[str, TextRate]] = {
    "openai": {
        "gpt-4o-mini": TextRate(0.00015, 0.0006),
        "gpt-4o": TextRate(0.0025, 0.01),
        "gpt-4-turbo": TextRate(0.01, 0.03),
        "gpt-4": TextRate(0.03, 0.06),
        "gpt-3.5-turbo": TextRate(0.0005, 0.0015),
    },
    "anthropic": {
        "claude-3-haiku": TextRate(0.00025, 0.00125),
        "claude-3-5-haiku": TextRate(0.0008, 0.004),
        "claude-3-5-sonnet": TextRate(0.003, 0.015),
        "claude-3-opus": TextRate(0.015, 0.075),
    },
    "groq": {
        "llama-3.1-8b-instant": TextRate(0.00005, 0.00008),
        "llama-3.3-70b-versatile": TextRate(0.00059, 0.00079),
        "gemma2-9b-it": TextRate(0.0002, 0.0002),
    },
}


def _lookup(table: Mapping[str, Mapping[str, V]], provider: str, model: str) -> Optional[V]:
    """Find a rate by exact model name, then by the longest matching prefix.

    Prefix matching lets dated snapshots such as ``gpt-4o-mini-2024-07-18``
    share their family's rate.
    """
    models = table.get(provider.lower())
    if not models:
        return None
    if model in models:
        return models[model]
    matches = [name for name in models if model.startswith(name)]
    if not matches:
        return None
    return models[max(matches, key=len)]


class RateTable:
    """Provider/model price lookup."""

    def __init__(
        self,
        audio: Optional[Mapping[str, Mapping[str, float]]] = None,
        text: Optional[Mapping[str, Mapping[str, TextRate]]] = None,
    ) -> None:
        self.audio = audio if audio is not None else DEFAULT_AUDIO_RATES
        self.text = text if text is not None else DEFAULT_TEXT_RATES

    def audio_rate(self, provider: str, model: str) -> Optional[float]:
        return _lookup(self.audio, provider, model)

    def text_rate(self, provider: str, model: str) -> Optional[TextRate]:
        return _lookup(self.text, provider, model)


class CostAccountant:
    """Prices usage and appends the charges to a run's ledger.

    Unknown provider/model pairs are logged and recorded at zero cost so a
    missing price never fails a run.
    """

    def __init__(self, ledger: CostLedger, rates: Optional[RateTable] = None) -> None:
        self.ledger = ledger
        self.rates = rates or RateTable()

    def record_transcription(
        self, provider: str, model: str, duration_seconds: Optional[float], stage: str = "transcription"
    ) -> CostEntry:
        minutes = max(0.0, (duration_seconds or 0) / 60)
        rate = self.rates.audio_rate(provider, model)
        note = ""
        if rate is None:
            logger.warning(f"No audio rate for {provider}/{model}; recording transcription cost as 0")
            rate, note = 0.0, "unknown rate"
        elif not duration_seconds:
            note = "duration unknown"

        entry = CostEntry(
            stage=stage,
            cost=minutes * rate,
            usage_metric=minutes,
            unit="minutes",
            provider=provider,
            model=model,
            note=note,
        )
        logger.info(f"Transcription cost: ${entry.cost:.4f} ({minutes:.2f} min of {model})")
        return self.ledger.add(entry)

    def record_completion(self, stage: str, provider: str, model: str, usage: TokenUsage) -> CostEntry:
        rate = self.rates.text_rate(provider, model)
        note = ""
        if rate is None:
            logger.warning(f"No text rate for {provider}/{model}; recording {stage} cost as 0")
            rate, note = TextRate(0.0, 0.0), "unknown rate"

        cost = (usage.prompt_tokens / 1000) * rate.prompt + (usage.completion_tokens / 1000) * rate.completion
        entry = CostEntry(
            stage=stage,
            cost=max(0.0, cost),
            usage_metric=usage.total_tokens,
            unit="tokens",
            provider=provider,
            model=model,
            note=note,
        )
        logger.info(f"{stage.capitalize()} cost: ${entry.cost:.4f} ({usage.total_tokens} tokens of {model})")
        return self.ledger.add(entry)
