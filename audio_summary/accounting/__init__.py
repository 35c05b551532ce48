"""Cost accounting for pipeline runs."""

from .cost import DEFAULT_AUDIO_RATES, DEFAULT_TEXT_RATES, CostAccountant, RateTable, TextRate

__all__ = ["CostAccountant", "DEFAULT_AUDIO_RATES", "DEFAULT_TEXT_RATES", "RateTable", "TextRate"]
