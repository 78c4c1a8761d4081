from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from orderflow.services.reference.resolver import GroundingResult


MATCH_METHOD = "reference_grounded_v3"

VIOLATION_NO_MANUFACTURER = "Missing normalized manufacturer"
VIOLATION_BAD_ITEM_NO = "Missing or invalid Item Number"
VIOLATION_NO_FINISH = "Unrecognized finish code"

# Two readiness thresholds have been used historically (0.6 and 0.8).
DEFAULT_READY_THRESHOLD = 0.6


class ScoringWeights(BaseModel):
    """Contribution of each grounding signal to the confidence score."""
    model_config = ConfigDict(frozen=True)

    manufacturer: float = Field(default=0.30, ge=0.0, le=1.0)
    item_number: float = Field(default=0.20, ge=0.0, le=1.0)
    finish: float = Field(default=0.15, ge=0.0, le=1.0)
    category: float = Field(default=0.15, ge=0.0, le=1.0)
    electrified_device: float = Field(default=0.10, ge=0.0, le=1.0)
    wiring: float = Field(default=0.10, ge=0.0, le=1.0)
    hardware_set: float = Field(default=0.10, ge=0.0, le=1.0)

    # item numbers of this length or shorter count as missing
    min_item_number_length: int = 3


@dataclass
class ScoreResult:
    score: float
    violations: List[str]
    method: str = MATCH_METHOD


def clamp01(v: float) -> float:
    return max(0.0, min(1.0, v))


def score_grounding(
    grounding: GroundingResult,
    customer_item_no: Optional[str],
    weights: Optional[ScoringWeights] = None,
) -> ScoreResult:
    """
    Combine grounding hits into a bounded score.

    Missing manufacturer, item number or finish are recorded as violations.
    Other misses just contribute nothing.
    """
    w = weights or ScoringWeights()
    score = 0.0
    violations: List[str] = []

    if grounding.manufacturer:
        score += w.manufacturer
    else:
        violations.append(VIOLATION_NO_MANUFACTURER)

    item_no = (customer_item_no or "").strip()
    if len(item_no) >= w.min_item_number_length:
        score += w.item_number
    else:
        violations.append(VIOLATION_BAD_ITEM_NO)

    if grounding.finish:
        score += w.finish
    else:
        violations.append(VIOLATION_NO_FINISH)

    if grounding.category:
        score += w.category

    if grounding.electrified_device:
        score += w.electrified_device
        # wiring only resolves through a device
        if grounding.wiring:
            score += w.wiring

    if grounding.hardware_set:
        score += w.hardware_set

    return ScoreResult(score=round(clamp01(score), 6), violations=violations)


def is_import_ready(
    score: float,
    violations: List[str],
    threshold: float = DEFAULT_READY_THRESHOLD,
) -> bool:
    return len(violations) == 0 and score >= threshold
