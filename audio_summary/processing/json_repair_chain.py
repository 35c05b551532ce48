"""Recover a JSON object from a model completion.

The chain tries three stages in order and stops at the first success:

1. ``strict``: parse the raw text as JSON.
2. ``repaired``: structurally repair the raw text, only when it already
   starts with ``{`` or ``[``.
3. ``extracted``: slice from the first ``{``/``[`` to the last ``}``/``]``
   to drop surrounding prose, then repair.

Only a JSON object counts as a result.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from json_repair import repair_json
from pydantic import ValidationError

from ..errors import StructuredOutputError
from ..models import StructuredSummary

logger = logging.getLogger(__name__)


class RepairStage(str, Enum):
    STRICT = "strict"
    REPAIRED = "repaired"
    EXTRACTED = "extracted"
    FAILED = "failed"


@dataclass
class RepairResult:
    """Outcome of the repair chain.

    Attributes:
        stage: Stage that produced ``value``, or FAILED
        value: Parsed object on success
        errors: One message per stage that was tried and failed
    """

    stage: RepairStage
    value: Optional[Dict[str, Any]] = None
    errors: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.stage is not RepairStage.FAILED


def _as_object(value: Any) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise ValueError(f"expected a JSON object, got {type(value).__name__}")
    return value


def _parse_strict(raw: str) -> Dict[str, Any]:
    return _as_object(json.loads(raw))


def _parse_repaired(raw: str) -> Dict[str, Any]:
    text = raw.strip()
    if not text.startswith(("{", "[")):
        raise ValueError("text does not start with a JSON object or array")
    return _as_object(json.loads(repair_json(text)))


def _extract_json_span(raw: str) -> str:
    starts = [i for i in (raw.find("{"), raw.find("[")) if i != -1]
    end = max(raw.rfind("}"), raw.rfind("]"))
    if not starts or end == -1 or end < min(starts):
        raise ValueError("no JSON object found in text")
    return raw[min(starts) : end + 1]


def _parse_extracted(raw: str) -> Dict[str, Any]:
    return _as_object(json.loads(repair_json(_extract_json_span(raw))))


_STAGES = (
    (RepairStage.STRICT, _parse_strict),
    (RepairStage.REPAIRED, _parse_repaired),
    (RepairStage.EXTRACTED, _parse_extracted),
)


def repair_structured_output(raw: str) -> RepairResult:
    """Run the three-stage repair chain over ``raw``.

    Never raises; inspect ``RepairResult.ok``.
    """
    errors: List[str] = []
    for stage, parse in _STAGES:
        try:
            value = parse(raw)
        except ValueError as e:
            # json.JSONDecodeError is a ValueError subclass
            errors.append(f"{stage.value}: {e}")
            continue
        if stage is not RepairStage.STRICT:
            logger.info(f"Recovered structured output at stage '{stage.value}'")
        return RepairResult(stage=stage, value=value, errors=errors)
    return RepairResult(stage=RepairStage.FAILED, errors=errors)


def parse_structured_summary(raw: str, index: Optional[int] = None) -> StructuredSummary:
    """Parse a chunk completion into a StructuredSummary.

    Raises:
        StructuredOutputError: If no stage yields an object matching the schema
    """
    result = repair_structured_output(raw)
    if not result.ok:
        logger.error(f"Structured output for chunk {index} could not be parsed: {'; '.join(result.errors)}")
        raise StructuredOutputError(index, raw, "; ".join(result.errors))
    try:
        return StructuredSummary.model_validate(result.value)
    except ValidationError as e:
        raise StructuredOutputError(index, raw, str(e)) from e
