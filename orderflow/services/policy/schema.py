from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from orderflow.schemas.routing_types import Lane, Phase, normalize_lane


# =========================================================
# META
# =========================================================

class PolicyMeta(BaseModel):
    model_config = ConfigDict(frozen=True, extra="allow")

    policy_id: str
    version: str
    created_at: str
    updated_at: str
    author: Optional[str] = None
    changelog: List[str] = Field(default_factory=list)
    sha256: Optional[str] = None


class PolicyContext(BaseModel):
    """Per-batch processing context."""
    model_config = ConfigDict(frozen=True)

    phase: Phase = "PHASE_1"
    customer_name: Optional[str] = None


# =========================================================
# RULE
# =========================================================

class RuleScope(BaseModel):
    model_config = ConfigDict(frozen=True)

    doc_type: List[str] = Field(default_factory=list)
    customer_name: List[str] = Field(default_factory=list)
    item_class: List[str] = Field(default_factory=list)


class RuleWhen(BaseModel):
    model_config = ConfigDict(frozen=True)

    edge_case_includes_any: List[str] = Field(default_factory=list)
    customer_item_desc_regex: Optional[str] = None
    customer_item_no_regex: Optional[str] = None
    mark_instructions_regex: Optional[str] = None
    qty_equals: Optional[float] = None
    unit_price_equals: Optional[float] = None
    extended_price_equals: Optional[float] = None


class RoutingAction(BaseModel):
    model_config = ConfigDict(frozen=True)

    lane: Lane
    min_confidence: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    required_fields_for_auto: List[str] = Field(default_factory=list)
    fields_requiring_review: List[str] = Field(default_factory=list)
    reason: str = ""

    @field_validator("lane", mode="before")
    @classmethod
    def _lane_alias(cls, v):
        return normalize_lane(v)


class PolicyRule(BaseModel):
    model_config = ConfigDict(frozen=True)

    rule_id: str
    enabled: bool = True
    priority: int = 0
    scope: RuleScope = Field(default_factory=RuleScope)
    when: RuleWhen = Field(default_factory=RuleWhen)
    then: RoutingAction


# =========================================================
# DEFAULTS
# =========================================================

class PolicyDefaults(BaseModel):
    model_config = ConfigDict(frozen=True, extra="allow")

    phase_min_confidence_auto: Dict[Phase, float]
    default_lane: Lane = "ASSIST"
    lane_for_doc_type: Dict[str, Lane] = Field(default_factory=dict)
    lane_for_item_class: Dict[str, Lane] = Field(default_factory=dict)

    @field_validator("default_lane", mode="before")
    @classmethod
    def _default_lane_alias(cls, v):
        return normalize_lane(v)

    @field_validator("lane_for_doc_type", "lane_for_item_class", mode="before")
    @classmethod
    def _lane_map_alias(cls, v):
        if isinstance(v, dict):
            return {k: normalize_lane(x) for k, x in v.items()}
        return v

    @field_validator("phase_min_confidence_auto")
    @classmethod
    def _thresholds_in_range(cls, v: Dict[str, float]) -> Dict[str, float]:
        for phase, threshold in v.items():
            if not 0.0 <= threshold <= 1.0:
                raise ValueError(f"phase_min_confidence_auto.{phase} must be within [0, 1]")
        return v


# =========================================================
# ROOT
# =========================================================

class PolicyConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="allow")

    meta: PolicyMeta
    defaults: PolicyDefaults
    edge_case_codes: List[str] = Field(default_factory=list)
    rules: List[PolicyRule]

    def min_confidence_for(self, phase: str) -> float:
        # unknown phase never auto-routes
        return float(self.defaults.phase_min_confidence_auto.get(phase, 1.0))

